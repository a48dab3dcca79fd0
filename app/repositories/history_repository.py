# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Batch commit history (audit log) data access.
Bounded append-only log of every commit attempt, per organisation.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from app.core.config import settings


class CommitHistoryRepository:
    """In-memory commit log (bounded ring buffer)."""

    def __init__(self) -> None:
        self._events: list[dict[str, Any]] = []

    # ── Read ──

    def get_all(
        self,
        org_id: Optional[str] = None,
        event_type: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        effective_limit = limit or settings.DEFAULT_HISTORY_LIMIT
        result = list(self._events)
        if org_id:
            result = [e for e in result if e["org_id"] == org_id]
        if event_type:
            result = [e for e in result if e["event_type"] == event_type]
        return result[-effective_limit:]

    def count(self, org_id: Optional[str] = None) -> int:
        return len(self._scoped(org_id))

    def count_by_type(self, org_id: Optional[str] = None) -> dict[str, int]:
        event_types: dict[str, int] = {}
        for e in self._scoped(org_id):
            et = e["event_type"]
            event_types[et] = event_types.get(et, 0) + 1
        return event_types

    def _scoped(self, org_id: Optional[str]) -> list[dict[str, Any]]:
        if org_id is None:
            return self._events
        return [e for e in self._events if e["org_id"] == org_id]

    # ── Write ──

    def record_event(
        self, event_type: str, org_id: str, details: dict[str, Any]
    ) -> dict[str, Any]:
        """Append an event, trimming the oldest when over MAX_HISTORY_SIZE."""
        event: dict[str, Any] = {
            "event_id": str(uuid.uuid4()),
            "event_type": event_type,
            "org_id": org_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "details": details,
        }
        self._events.append(event)
        if len(self._events) > settings.MAX_HISTORY_SIZE:
            del self._events[: len(self._events) - settings.MAX_HISTORY_SIZE]
        return event

    def clear(self) -> None:
        self._events.clear()
