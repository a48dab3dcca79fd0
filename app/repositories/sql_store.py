# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for scheduling tables on a directly reachable database."""
import time
import uuid
from contextlib import contextmanager
from datetime import date
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import delete, select, text, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from app.core.database import members, service_assignments, service_types
from app.core.errors import BackendError
from app.core.logging import get_logger
from app.metrics.prometheus import STORE_ERRORS, STORE_REQUEST_LATENCY

logger = get_logger(__name__)


def _iso(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat() if hasattr(value, "isoformat") else str(value)


def _service_type_to_dict(row) -> Dict[str, Any]:
    return {
        "id": str(row.id),
        "name": row.name,
        "frequency": row.frequency,
        "description": row.description,
        "is_active": bool(row.is_active),
    }


def _assignment_to_dict(values) -> Dict[str, Any]:
    return {
        "id": str(values["id"]),
        "service_type_id": str(values["service_type_id"]),
        "member_id": str(values["member_id"]),
        "service_date": _iso(values["service_date"]),
        "sermon_title": values["sermon_title"],
        "notes": values["notes"],
        "status": values["status"],
    }


class SqlSchedulingStore:
    backend_name = "sql"

    def __init__(self, engine: Engine):
        self._engine = engine

    @contextmanager
    def _timed(self, operation: str) -> Iterator[None]:
        start = time.time()
        try:
            yield
        except SQLAlchemyError as exc:
            STORE_ERRORS.labels(backend=self.backend_name, operation=operation).inc()
            logger.warning("Database error: operation=%s, error=%s", operation, exc)
            raise BackendError(str(exc.orig) if getattr(exc, "orig", None) else str(exc)) from exc
        finally:
            STORE_REQUEST_LATENCY.labels(
                backend=self.backend_name, operation=operation
            ).observe(time.time() - start)

    # ── Directory ──────────────────────────────────────────────────────

    def list_service_types(self, org_id: str, include_inactive: bool = False) -> List[Dict[str, Any]]:
        query = select(service_types).where(service_types.c.org_id == org_id)
        if not include_inactive:
            query = query.where(service_types.c.is_active.is_(True))
        query = query.order_by(service_types.c.name.asc())
        with self._timed("list_service_types"), self._engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_service_type_to_dict(r) for r in rows]

    def create_service_type(self, org_id: str, name: str, frequency: str,
                            description: Optional[str] = None) -> Dict[str, Any]:
        record = {
            "id": str(uuid.uuid4()),
            "org_id": org_id,
            "name": name,
            "frequency": frequency,
            "description": description,
            "is_active": True,
        }
        with self._timed("create_service_type"), self._engine.begin() as conn:
            conn.execute(service_types.insert(), record)
        return {k: v for k, v in record.items() if k != "org_id"}

    def set_service_type_active(self, org_id: str, service_type_id: str,
                                is_active: bool) -> Dict[str, Any]:
        return self.update_service_type(org_id, service_type_id, {"is_active": is_active})

    def update_service_type(self, org_id: str, service_type_id: str,
                            fields: Dict[str, Any]) -> Dict[str, Any]:
        with self._timed("update_service_type"), self._engine.begin() as conn:
            result = conn.execute(
                update(service_types)
                .where(service_types.c.id == service_type_id)
                .where(service_types.c.org_id == org_id)
                .values(**fields)
            )
            if result.rowcount == 0:
                raise KeyError(f"Service type '{service_type_id}' not found")
            row = conn.execute(
                select(service_types).where(service_types.c.id == service_type_id)
            ).fetchone()
        return _service_type_to_dict(row)

    def list_members(self, org_id: str) -> List[Dict[str, Any]]:
        query = (
            select(members.c.id, members.c.name)
            .where(members.c.org_id == org_id)
            .where(members.c.is_active.is_(True))
            .order_by(members.c.name.asc())
        )
        with self._timed("list_members"), self._engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [{"id": str(r.id), "name": str(r.name)} for r in rows]

    # ── Assignments ────────────────────────────────────────────────────

    def bulk_insert_assignments(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """All rows in one transaction: a single failure rolls back the batch."""
        if not rows:
            return []
        records = [
            {
                "id": str(uuid.uuid4()),
                "org_id": r["org_id"],
                "service_type_id": r["service_type_id"],
                "member_id": r["member_id"],
                "service_date": date.fromisoformat(r["service_date"]),
                "sermon_title": r.get("sermon_title"),
                "notes": r.get("notes"),
                "status": r.get("status", "scheduled"),
            }
            for r in rows
        ]
        with self._timed("bulk_insert_assignments"), self._engine.begin() as conn:
            conn.execute(service_assignments.insert(), records)
        return [{**r, "service_date": _iso(r["service_date"])} for r in records]

    def list_assignments(self, org_id: str, from_date: str, to_date: str) -> List[Dict[str, Any]]:
        query = (
            select(
                service_assignments.c.id,
                service_assignments.c.service_date,
                service_assignments.c.sermon_title,
                service_assignments.c.notes,
                service_assignments.c.status,
                service_types.c.id.label("service_type_id"),
                service_types.c.name.label("service_type_name"),
                service_types.c.frequency.label("service_type_frequency"),
                members.c.id.label("member_id"),
                members.c.name.label("member_name"),
            )
            .select_from(
                service_assignments
                .outerjoin(service_types, service_assignments.c.service_type_id == service_types.c.id)
                .outerjoin(members, service_assignments.c.member_id == members.c.id)
            )
            .where(service_assignments.c.org_id == org_id)
            .where(service_assignments.c.service_date >= date.fromisoformat(from_date))
            .where(service_assignments.c.service_date <= date.fromisoformat(to_date))
            .order_by(service_assignments.c.service_date.asc())
        )
        with self._timed("list_assignments"), self._engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [
            {
                "id": str(r.id),
                "service_date": _iso(r.service_date),
                "sermon_title": r.sermon_title,
                "notes": r.notes,
                "status": r.status,
                "service_type": (
                    {"id": str(r.service_type_id), "name": r.service_type_name,
                     "frequency": r.service_type_frequency}
                    if r.service_type_id is not None else None
                ),
                "member": (
                    {"id": str(r.member_id), "name": r.member_name}
                    if r.member_id is not None else None
                ),
            }
            for r in rows
        ]

    def create_assignment(self, row: Dict[str, Any]) -> Dict[str, Any]:
        record = {
            "id": str(uuid.uuid4()),
            "org_id": row["org_id"],
            "service_type_id": row["service_type_id"],
            "member_id": row["member_id"],
            "service_date": date.fromisoformat(row["service_date"]),
            "sermon_title": row.get("sermon_title"),
            "notes": row.get("notes"),
            "status": row.get("status", "scheduled"),
        }
        with self._timed("create_assignment"), self._engine.begin() as conn:
            conn.execute(service_assignments.insert(), record)
        return _assignment_to_dict(record)

    def update_assignment(self, org_id: str, assignment_id: str,
                          fields: Dict[str, Any]) -> Dict[str, Any]:
        values = dict(fields)
        if "service_date" in values:
            values["service_date"] = date.fromisoformat(values["service_date"])
        with self._timed("update_assignment"), self._engine.begin() as conn:
            result = conn.execute(
                update(service_assignments)
                .where(service_assignments.c.id == assignment_id)
                .where(service_assignments.c.org_id == org_id)
                .values(**values)
            )
            if result.rowcount == 0:
                raise KeyError(f"Assignment '{assignment_id}' not found")
            row = conn.execute(
                select(service_assignments).where(service_assignments.c.id == assignment_id)
            ).fetchone()
        return _assignment_to_dict(row._mapping)

    def delete_assignment(self, org_id: str, assignment_id: str) -> None:
        with self._timed("delete_assignment"), self._engine.begin() as conn:
            result = conn.execute(
                delete(service_assignments)
                .where(service_assignments.c.id == assignment_id)
                .where(service_assignments.c.org_id == org_id)
            )
            if result.rowcount == 0:
                raise KeyError(f"Assignment '{assignment_id}' not found")

    # ── Health ─────────────────────────────────────────────────────────

    def ping(self) -> bool:
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.warning("Database unavailable: %s", exc)
            return False
        return True
