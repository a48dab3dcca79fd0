# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Batch rotation: configure, preview, commit.

The preview is always derived from an immutable BatchConfig; nothing derived
is stored between calls. Commit converts the preview into assignment rows and
submits them in a single bulk insert; the store decides all-or-nothing.
"""

import threading
from typing import Any, Sequence

from app.core.config import settings
from app.core.errors import BackendError, BatchValidationError, CommitInProgressError
from app.core.logging import get_logger
from app.metrics.prometheus import (
    ASSIGNMENTS_CREATED,
    BATCH_FAILURES,
    BATCHES_COMMITTED,
    COMMITS_IN_FLIGHT,
    PREVIEWS_GENERATED,
)
from app.models.domain import BatchConfig, PreviewAssignment
from app.repositories.history_repository import CommitHistoryRepository
from app.repositories.store import SchedulingStore
from app.services.date_set import compute_date_set
from app.services.rotation import compute_rotation, rotation_counts

logger = get_logger(__name__)

MSG_NO_SERVICE_TYPE = "Select a service type"
MSG_NO_ROSTER = "Select at least one member"
MSG_NO_DATES = "Select at least one date"


def validate_config(config: BatchConfig, dates: Sequence[str]) -> list[str]:
    """Reasons a configuration cannot be committed; empty when it can."""
    errors: list[str] = []
    if not config.service_type_id:
        errors.append(MSG_NO_SERVICE_TYPE)
    if not config.roster:
        errors.append(MSG_NO_ROSTER)
    if not dates:
        errors.append(MSG_NO_DATES)
    return errors


def build_assignment_rows(
    preview: Sequence[PreviewAssignment],
    org_id: str,
    service_type_id: str,
    status: str | None = None,
) -> list[dict[str, Any]]:
    return [
        {
            "org_id": org_id,
            "service_type_id": service_type_id,
            "member_id": p.member_id,
            "service_date": p.date,
            "status": status or settings.DEFAULT_ASSIGNMENT_STATUS,
        }
        for p in preview
    ]


class BatchService:
    """Business logic for the batch rotation workflow."""

    def __init__(
        self,
        store: SchedulingStore,
        history_repo: CommitHistoryRepository,
    ) -> None:
        self._store = store
        self._history = history_repo
        self._in_flight: set[tuple] = set()
        self._in_flight_lock = threading.Lock()

    # ── Configuring ──

    def load_directory(self, org_id: str) -> dict[str, Any]:
        """Active service types and members an administrator can pick from."""
        return {
            "service_types": self._store.list_service_types(org_id),
            "members": self._store.list_members(org_id),
        }

    @staticmethod
    def compute_dates(config: BatchConfig) -> list[str]:
        spec = config.date_set
        return compute_date_set(spec.mode, spec.params())

    # ── Previewing ──

    def preview(self, org_id: str, config: BatchConfig) -> dict[str, Any]:
        """
        Derive the rotation for ``config``. Never raises for validation:
        an empty preview comes back with the reasons it is empty.
        """
        dates = self.compute_dates(config)
        errors = validate_config(config, dates)

        assignments: list[PreviewAssignment] = []
        if not errors:
            name_lookup = {m["id"]: m["name"] for m in self._store.list_members(org_id)}
            assignments = compute_rotation(dates, config.roster, name_lookup)

        PREVIEWS_GENERATED.labels(date_mode=config.date_set.mode).inc()
        return {
            "service_type_id": config.service_type_id,
            "dates": dates,
            "assignments": [a.model_dump() for a in assignments],
            "counts": rotation_counts(config.roster, assignments) if assignments else [],
            "total": len(assignments),
            "errors": errors,
        }

    # ── Committing ──

    def commit(self, org_id: str, config: BatchConfig) -> dict[str, Any]:
        """Recompute the preview for ``config`` and persist it."""
        dates = self.compute_dates(config)
        errors = validate_config(config, dates)
        if errors:
            self._reject(org_id, errors)

        name_lookup = {m["id"]: m["name"] for m in self._store.list_members(org_id)}
        preview = compute_rotation(dates, config.roster, name_lookup)
        return self.commit_batch(preview, org_id, config.service_type_id)

    def commit_batch(
        self,
        preview: Sequence[PreviewAssignment],
        org_id: str,
        service_type_id: str | None,
    ) -> dict[str, Any]:
        """
        Persist an already computed preview as one bulk insert.
        Raises BatchValidationError, CommitInProgressError or BackendError.
        """
        errors: list[str] = []
        if not service_type_id:
            errors.append(MSG_NO_SERVICE_TYPE)
        if not preview:
            errors.append(MSG_NO_DATES)
        if errors:
            self._reject(org_id, errors)

        rows = build_assignment_rows(preview, org_id, service_type_id)
        key = (org_id, service_type_id, tuple((r["service_date"], r["member_id"]) for r in rows))

        with self._in_flight_lock:
            if key in self._in_flight:
                BATCH_FAILURES.labels(reason="in_flight").inc()
                raise CommitInProgressError(
                    "An identical batch is already being submitted"
                )
            self._in_flight.add(key)
        COMMITS_IN_FLIGHT.inc()

        try:
            created = self._store.bulk_insert_assignments(rows)
        except BackendError as exc:
            BATCH_FAILURES.labels(reason="backend").inc()
            self._history.record_event(
                "batch_failed",
                org_id,
                {"service_type_id": service_type_id, "rows": len(rows), "error": str(exc)},
            )
            logger.error("Batch commit failed: org=%s, rows=%d, error=%s", org_id, len(rows), exc)
            raise
        finally:
            with self._in_flight_lock:
                self._in_flight.discard(key)
            COMMITS_IN_FLIGHT.dec()

        BATCHES_COMMITTED.inc()
        ASSIGNMENTS_CREATED.inc(len(rows))
        self._history.record_event(
            "batch_committed",
            org_id,
            {
                "service_type_id": service_type_id,
                "rows": len(rows),
                "first_date": rows[0]["service_date"],
                "last_date": rows[-1]["service_date"],
                "members": sorted({r["member_id"] for r in rows}),
            },
        )
        logger.info("Batch committed: org=%s, service_type=%s, rows=%d", org_id, service_type_id, len(rows))
        return {
            "status": "committed",
            "created": len(rows),
            "assignments": created,
        }

    def _reject(self, org_id: str, errors: list[str]) -> None:
        BATCH_FAILURES.labels(reason="validation").inc()
        self._history.record_event("batch_rejected", org_id, {"errors": errors})
        logger.info("Batch rejected: org=%s, errors=%s", org_id, errors)
        raise BatchValidationError(errors)

    # ── Queries ──

    def get_history(
        self, org_id: str, event_type: str | None = None, limit: int | None = None
    ) -> list[dict[str, Any]]:
        return self._history.get_all(org_id=org_id, event_type=event_type, limit=limit)

    def history_summary(self, org_id: str) -> dict[str, Any]:
        """Commit attempts for the org, in total and per outcome."""
        return {
            "total": self._history.count(org_id),
            "by_type": self._history.count_by_type(org_id),
        }

    def in_flight_count(self) -> int:
        with self._in_flight_lock:
            return len(self._in_flight)
