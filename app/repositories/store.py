# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository contract shared by the REST and SQL scheduling stores.
NO business rules here: pure data access. Failures raise BackendError.
"""

from typing import Any, Optional, Protocol


class SchedulingStore(Protocol):
    backend_name: str

    # ── Directory ──

    def list_service_types(
        self, org_id: str, include_inactive: bool = False
    ) -> list[dict[str, Any]]: ...

    def create_service_type(
        self,
        org_id: str,
        name: str,
        frequency: str,
        description: Optional[str] = None,
    ) -> dict[str, Any]: ...

    def set_service_type_active(
        self, org_id: str, service_type_id: str, is_active: bool
    ) -> dict[str, Any]: ...

    def update_service_type(
        self, org_id: str, service_type_id: str, fields: dict[str, Any]
    ) -> dict[str, Any]: ...

    def list_members(self, org_id: str) -> list[dict[str, Any]]: ...

    # ── Assignments ──

    def bulk_insert_assignments(
        self, rows: list[dict[str, Any]]
    ) -> list[dict[str, Any]]: ...

    def list_assignments(
        self, org_id: str, from_date: str, to_date: str
    ) -> list[dict[str, Any]]: ...

    def create_assignment(self, row: dict[str, Any]) -> dict[str, Any]: ...

    def update_assignment(
        self, org_id: str, assignment_id: str, fields: dict[str, Any]
    ) -> dict[str, Any]: ...

    def delete_assignment(self, org_id: str, assignment_id: str) -> None: ...

    # ── Health ──

    def ping(self) -> bool: ...
