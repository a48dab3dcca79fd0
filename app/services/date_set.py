# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Date-set selection: pure computation, no side effects.

Turns "these specific days" or "every Tuesday from X to Y" into a sorted,
duplicate-free list of ISO dates. An empty list is a valid result.
"""

import calendar
from datetime import date, timedelta
from typing import Any, Iterable, Optional, Union

from app.core.config import settings

DateLike = Union[date, str]

DATE_SET_MODES: tuple[str, ...] = ("explicit", "weekday")


def _to_date(value: DateLike) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def sunday_based_weekday(day: date) -> int:
    """0=Sunday .. 6=Saturday (Python's own weekday() starts on Monday)."""
    return (day.weekday() + 1) % 7


def build_from_explicit_selection(toggled_dates: Iterable[DateLike]) -> list[str]:
    """Return the toggled dates sorted ascending, duplicates collapsed."""
    return sorted({_to_date(d).isoformat() for d in toggled_dates})


def build_from_weekday_rule(
    start_date: DateLike,
    end_date: DateLike,
    weekday: int,
) -> list[str]:
    """Every date in [start_date, end_date] falling on ``weekday``."""
    if not 0 <= weekday <= 6:
        raise ValueError(f"weekday must be between 0 (Sunday) and 6 (Saturday), got {weekday}")
    start = _to_date(start_date)
    end = _to_date(end_date)
    if end < start:
        return []

    # jump straight to the first match, then step a week at a time
    offset = (weekday - sunday_based_weekday(start)) % 7
    current = start + timedelta(days=offset)
    result: list[str] = []
    while current <= end:
        result.append(current.isoformat())
        current += timedelta(days=7)
    return result


def compute_date_set(mode: str, params: dict[str, Any]) -> list[str]:
    """
    Dispatch to one of the two selection strategies.

    ``explicit`` expects ``params["dates"]``; ``weekday`` expects
    ``params["start"]``, ``params["end"]`` and ``params["weekday"]``.
    A weekday rule with a missing bound yields no dates.
    """
    if mode == "explicit":
        return build_from_explicit_selection(params.get("dates") or ())
    if mode == "weekday":
        start = params.get("start")
        end = params.get("end")
        weekday = params.get("weekday")
        if start is None or end is None or weekday is None:
            return []
        return build_from_weekday_rule(start, end, int(weekday))
    raise ValueError(f"Unknown date-set mode '{mode}'. Expected one of {DATE_SET_MODES}")


# ── Calendar picker helpers ──

def _first_of_month(day: date) -> date:
    return day.replace(day=1)


def _add_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    return date(day.year + month_index // 12, month_index % 12 + 1, 1)


def calendar_dates(start_month: DateLike, month_count: int) -> list[str]:
    """All days of ``month_count`` months starting at the month of ``start_month``."""
    if month_count not in settings.CALENDAR_MONTH_OPTIONS:
        raise ValueError(
            f"month_count must be one of {settings.CALENDAR_MONTH_OPTIONS}, got {month_count}"
        )
    first = _first_of_month(_to_date(start_month))
    result: list[str] = []
    for i in range(month_count):
        month_start = _add_months(first, i)
        days_in_month = calendar.monthrange(month_start.year, month_start.month)[1]
        result.extend(
            month_start.replace(day=d).isoformat() for d in range(1, days_in_month + 1)
        )
    return result


def calendar_grid(
    start_month: DateLike,
    month_count: int,
    selected: Optional[Iterable[DateLike]] = None,
) -> list[dict[str, Any]]:
    """
    Group calendar days per month, padded with leading ``None`` cells so the
    first day lands under its weekday column (Sunday first).
    """
    chosen = set(build_from_explicit_selection(selected or ()))
    months: dict[str, list[str]] = {}
    for iso in calendar_dates(start_month, month_count):
        months.setdefault(iso[:7], []).append(iso)

    grid: list[dict[str, Any]] = []
    for month_key, days in months.items():
        leading = sunday_based_weekday(date.fromisoformat(days[0]))
        grid.append(
            {
                "month": month_key,
                "leading_blanks": leading,
                "cells": [None] * leading + days,
                "selected": [d for d in days if d in chosen],
            }
        )
    return grid


def default_weekday_window(today: DateLike) -> tuple[str, str]:
    """Sunday of the current week through the Saturday four weeks later."""
    day = _to_date(today)
    start = day - timedelta(days=sunday_based_weekday(day))
    end = start + timedelta(days=27)
    return start.isoformat(), end.isoformat()
