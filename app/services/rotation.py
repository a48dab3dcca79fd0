# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Rotation logic: pure computation, no side effects.
"""

from typing import Mapping, Optional, Sequence

from app.core.config import settings
from app.models.domain import PreviewAssignment


def compute_rotation(
    date_set: Sequence[str],
    roster: Sequence[str],
    name_lookup: Mapping[str, str],
    unknown_label: Optional[str] = None,
) -> list[PreviewAssignment]:
    """
    Round-robin the roster over the dates: date ``i`` goes to
    ``roster[i % len(roster)]``. Output keeps the order of ``date_set``.
    Pure function: no I/O, no metrics, no logging.
    """
    if not date_set or not roster:
        return []

    placeholder = unknown_label if unknown_label is not None else settings.UNKNOWN_MEMBER_LABEL
    assignments: list[PreviewAssignment] = []
    for index, service_date in enumerate(date_set):
        member_id = roster[index % len(roster)]
        assignments.append(
            PreviewAssignment(
                date=service_date,
                member_id=member_id,
                member_name=name_lookup.get(member_id) or placeholder,
            )
        )
    return assignments


def rotation_counts(
    roster: Sequence[str],
    assignments: Sequence[PreviewAssignment],
) -> list[dict[str, object]]:
    """Per-member assignment totals, in roster order."""
    counts: dict[str, int] = {member_id: 0 for member_id in roster}
    names: dict[str, str] = {}
    for a in assignments:
        counts[a.member_id] = counts.get(a.member_id, 0) + 1
        names[a.member_id] = a.member_name
    return [
        {"member_id": member_id, "member_name": names.get(member_id), "count": count}
        for member_id, count in counts.items()
    ]
