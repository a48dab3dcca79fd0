# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Service types, assignment listings and member workload.
Single-record editing and read models around the batch workflow.
"""

from datetime import date
from typing import Any, Optional

from app.core.config import settings
from app.core.logging import get_logger
from app.repositories.store import SchedulingStore

logger = get_logger(__name__)

VALID_FREQUENCIES: tuple[str, ...] = ("weekly", "biweekly", "monthly", "once")
VALID_STATUSES: tuple[str, ...] = ("scheduled", "completed", "cancelled")
ASSIGNMENT_FIELDS: tuple[str, ...] = (
    "service_type_id", "member_id", "service_date", "sermon_title", "notes", "status",
)
REQUIRED_ASSIGNMENT_FIELDS: tuple[str, ...] = ("service_type_id", "member_id", "service_date", "status")

OVERLOAD_FACTOR = 1.5
UNDERUSE_FACTOR = 0.5


def _check_range(from_date: str, to_date: str) -> None:
    if date.fromisoformat(to_date) < date.fromisoformat(from_date):
        raise ValueError("to_date must not be before from_date")


def _clean_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise ValueError("Service type name is required")
    return name


def _check_frequency(frequency: str) -> str:
    if frequency not in VALID_FREQUENCIES:
        raise ValueError(f"frequency must be one of {VALID_FREQUENCIES}")
    return frequency


def _check_status(status: str) -> str:
    if status not in VALID_STATUSES:
        raise ValueError(f"status must be one of {VALID_STATUSES}")
    return status


class SchedulingService:
    """Business logic around service types and existing assignments."""

    def __init__(self, store: SchedulingStore) -> None:
        self._store = store

    # ── Service types ──

    def list_service_types(self, org_id: str, include_inactive: bool = False) -> list[dict[str, Any]]:
        return self._store.list_service_types(org_id, include_inactive=include_inactive)

    def create_service_type(
        self,
        org_id: str,
        name: str,
        frequency: str,
        description: Optional[str] = None,
    ) -> dict[str, Any]:
        """Raises ValueError on bad input."""
        name = _clean_name(name)
        _check_frequency(frequency)
        record = self._store.create_service_type(org_id, name, frequency, description)
        logger.info("Service type created: org=%s, name=%s", org_id, name)
        return record

    def set_service_type_active(self, org_id: str, service_type_id: str, is_active: bool) -> dict[str, Any]:
        """Raises KeyError if the service type does not exist in the org."""
        record = self._store.set_service_type_active(org_id, service_type_id, is_active)
        logger.info(
            "Service type %s: org=%s, id=%s",
            "enabled" if is_active else "disabled",
            org_id,
            service_type_id,
        )
        return record

    def update_service_type(
        self,
        org_id: str,
        service_type_id: str,
        name: str,
        frequency: str,
        description: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> dict[str, Any]:
        """
        Replace name and frequency; ``description`` and ``is_active`` are
        left untouched when omitted. Raises ValueError or KeyError.
        """
        fields: dict[str, Any] = {
            "name": _clean_name(name),
            "frequency": _check_frequency(frequency),
        }
        if description is not None:
            fields["description"] = description
        if is_active is not None:
            fields["is_active"] = is_active
        record = self._store.update_service_type(org_id, service_type_id, fields)
        logger.info("Service type updated: org=%s, id=%s", org_id, service_type_id)
        return record

    # ── Assignments ──

    def list_assignments(
        self,
        org_id: str,
        from_date: str,
        to_date: str,
        service_type_id: Optional[str] = None,
        member_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        _check_range(from_date, to_date)
        result = self._store.list_assignments(org_id, from_date, to_date)
        if service_type_id:
            result = [a for a in result if (a["service_type"] or {}).get("id") == service_type_id]
        if member_id:
            result = [a for a in result if (a["member"] or {}).get("id") == member_id]
        if status:
            result = [a for a in result if a["status"] == status]
        return result

    def create_assignment(
        self,
        org_id: str,
        service_type_id: str,
        member_id: str,
        service_date: str,
        sermon_title: Optional[str] = None,
        notes: Optional[str] = None,
        status: Optional[str] = None,
    ) -> dict[str, Any]:
        """Schedule a single duty outside of a batch."""
        row = {
            "org_id": org_id,
            "service_type_id": service_type_id,
            "member_id": member_id,
            "service_date": date.fromisoformat(service_date).isoformat(),
            "sermon_title": sermon_title,
            "notes": notes,
            "status": _check_status(status or settings.DEFAULT_ASSIGNMENT_STATUS),
        }
        record = self._store.create_assignment(row)
        logger.info(
            "Assignment created: org=%s, member=%s, date=%s", org_id, member_id, row["service_date"]
        )
        return record

    def update_assignment(
        self, org_id: str, assignment_id: str, fields: dict[str, Any]
    ) -> dict[str, Any]:
        """Partial update: only the keys present in ``fields`` change."""
        unknown = set(fields) - set(ASSIGNMENT_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update {sorted(unknown)}")
        if not fields:
            raise ValueError("No fields to update")
        values = dict(fields)
        cleared = [k for k in REQUIRED_ASSIGNMENT_FIELDS if k in values and values[k] is None]
        if cleared:
            raise ValueError(f"Cannot clear {cleared}")
        if "service_date" in values:
            values["service_date"] = date.fromisoformat(str(values["service_date"])).isoformat()
        if "status" in values:
            _check_status(values["status"])
        record = self._store.update_assignment(org_id, assignment_id, values)
        logger.info("Assignment updated: org=%s, id=%s, fields=%s", org_id, assignment_id, sorted(values))
        return record

    def delete_assignment(self, org_id: str, assignment_id: str) -> dict[str, str]:
        """Raises KeyError if the assignment does not exist in the org."""
        self._store.delete_assignment(org_id, assignment_id)
        logger.info("Assignment deleted: org=%s, id=%s", org_id, assignment_id)
        return {"status": "deleted", "assignment_id": assignment_id}

    # ── Workload ──

    def workload_stats(self, org_id: str, from_date: str, to_date: str) -> list[dict[str, Any]]:
        """
        Count non-cancelled assignments per active member and flag members
        well above or below the average.
        """
        _check_range(from_date, to_date)
        members = self._store.list_members(org_id)
        assignments = [
            a for a in self._store.list_assignments(org_id, from_date, to_date)
            if a["status"] != "cancelled"
        ]

        workload: dict[str, dict[str, Any]] = {
            m["id"]: {
                "member_id": m["id"],
                "member_name": m["name"],
                "total_count": 0,
                "service_types": {},
                "last_service_date": None,
            }
            for m in members
        }
        for a in assignments:
            entry = workload.get((a["member"] or {}).get("id"))
            if entry is None:
                continue
            entry["total_count"] += 1
            type_name = (a["service_type"] or {}).get("name") or "Unknown"
            entry["service_types"][type_name] = entry["service_types"].get(type_name, 0) + 1
            if entry["last_service_date"] is None or a["service_date"] > entry["last_service_date"]:
                entry["last_service_date"] = a["service_date"]

        average = len(assignments) / (len(members) or 1)
        result: list[dict[str, Any]] = []
        for entry in workload.values():
            status = "balanced"
            if entry["total_count"] > average * OVERLOAD_FACTOR:
                status = "overloaded"
            elif entry["total_count"] < average * UNDERUSE_FACTOR:
                status = "underutilized"
            result.append(
                {
                    **entry,
                    "service_types": [
                        {"name": name, "count": count}
                        for name, count in entry["service_types"].items()
                    ],
                    "status": status,
                    "average_workload": average,
                }
            )
        return result
