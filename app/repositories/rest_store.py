# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: scheduling data on a hosted PostgREST (Supabase) backend.
Row-level security and the all-or-nothing insert of a JSON array are
provided by the backend; this class only speaks its HTTP dialect.
"""

import time
from typing import Any, Optional

import httpx

from app.core.config import settings
from app.core.errors import BackendError
from app.core.logging import get_logger
from app.metrics.prometheus import STORE_ERRORS, STORE_REQUEST_LATENCY

logger = get_logger(__name__)

SERVICE_TYPE_COLUMNS = "id,name,frequency,description,is_active"
ASSIGNMENT_COLUMNS = "id,service_type_id,member_id,service_date,sermon_title,notes,status"
ASSIGNMENT_SELECT = (
    "id,service_date,sermon_title,notes,status,"
    "service_types(id,name,frequency),members(id,name)"
)


def _flatten_assignment(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": str(row["id"]),
        "service_date": row["service_date"],
        "sermon_title": row.get("sermon_title"),
        "notes": row.get("notes"),
        "status": row.get("status"),
        "service_type": row.get("service_types"),
        "member": row.get("members"),
    }


class RestSchedulingStore:
    """Scheduling store backed by the PostgREST API of the hosted backend."""

    backend_name = "rest"

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._base_url = (base_url or settings.SUPABASE_URL).rstrip("/")
        self._api_key = api_key if api_key is not None else settings.SUPABASE_KEY
        self._timeout = timeout if timeout is not None else settings.BACKEND_TIMEOUT

    # ── Transport ──

    def _headers(self, prefer: Optional[str] = None) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["apikey"] = self._api_key
            headers["Authorization"] = f"Bearer {self._api_key}"
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _request(
        self,
        operation: str,
        method: str,
        table: str,
        params: Any = None,
        json: Any = None,
        prefer: Optional[str] = None,
    ) -> Any:
        start = time.time()
        try:
            with httpx.Client(timeout=self._timeout) as client:
                resp = client.request(
                    method,
                    f"{self._base_url}/rest/v1/{table}",
                    params=params,
                    json=json,
                    headers=self._headers(prefer),
                )
        except httpx.HTTPError as exc:
            STORE_ERRORS.labels(backend=self.backend_name, operation=operation).inc()
            logger.warning("Store unreachable: operation=%s, error=%s", operation, exc)
            raise BackendError(f"Backend unreachable: {exc}") from exc
        finally:
            STORE_REQUEST_LATENCY.labels(
                backend=self.backend_name, operation=operation
            ).observe(time.time() - start)

        if resp.status_code >= 400:
            STORE_ERRORS.labels(backend=self.backend_name, operation=operation).inc()
            message = self._error_message(resp)
            logger.warning(
                "Store rejected request: operation=%s, status=%d, message=%s",
                operation,
                resp.status_code,
                message,
            )
            raise BackendError(message)

        if resp.status_code == 204 or not resp.content:
            return []
        return resp.json()

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        try:
            body = resp.json()
        except ValueError:
            return resp.text or f"HTTP {resp.status_code}"
        if isinstance(body, dict):
            return body.get("message") or body.get("error") or str(body)
        return str(body)

    # ── Directory ──

    def list_service_types(
        self, org_id: str, include_inactive: bool = False
    ) -> list[dict[str, Any]]:
        params = [
            ("select", SERVICE_TYPE_COLUMNS),
            ("org_id", f"eq.{org_id}"),
            ("order", "name.asc"),
        ]
        if not include_inactive:
            params.append(("is_active", "eq.true"))
        return self._request("list_service_types", "GET", "service_types", params=params)

    def create_service_type(
        self,
        org_id: str,
        name: str,
        frequency: str,
        description: Optional[str] = None,
    ) -> dict[str, Any]:
        rows = self._request(
            "create_service_type",
            "POST",
            "service_types",
            params=[("select", SERVICE_TYPE_COLUMNS)],
            json={
                "org_id": org_id,
                "name": name,
                "frequency": frequency,
                "description": description,
            },
            prefer="return=representation",
        )
        if not rows:
            raise BackendError("Service type was not returned by the backend")
        return rows[0]

    def set_service_type_active(
        self, org_id: str, service_type_id: str, is_active: bool
    ) -> dict[str, Any]:
        return self.update_service_type(org_id, service_type_id, {"is_active": is_active})

    def update_service_type(
        self, org_id: str, service_type_id: str, fields: dict[str, Any]
    ) -> dict[str, Any]:
        rows = self._request(
            "update_service_type",
            "PATCH",
            "service_types",
            params=[
                ("id", f"eq.{service_type_id}"),
                ("org_id", f"eq.{org_id}"),
                ("select", SERVICE_TYPE_COLUMNS),
            ],
            json=fields,
            prefer="return=representation",
        )
        if not rows:
            raise KeyError(f"Service type '{service_type_id}' not found")
        return rows[0]

    def list_members(self, org_id: str) -> list[dict[str, Any]]:
        rows = self._request(
            "list_members",
            "GET",
            "members",
            params=[
                ("select", "id,name"),
                ("org_id", f"eq.{org_id}"),
                ("is_active", "eq.true"),
                ("order", "name.asc"),
            ],
        )
        return [{"id": str(r["id"]), "name": str(r["name"])} for r in rows]

    # ── Assignments ──

    def bulk_insert_assignments(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Insert every row in one request; PostgREST applies it as one statement."""
        if not rows:
            return []
        return self._request(
            "bulk_insert_assignments",
            "POST",
            "service_assignments",
            json=rows,
            prefer="return=representation",
        )

    def list_assignments(
        self, org_id: str, from_date: str, to_date: str
    ) -> list[dict[str, Any]]:
        rows = self._request(
            "list_assignments",
            "GET",
            "service_assignments",
            params=[
                ("select", ASSIGNMENT_SELECT),
                ("org_id", f"eq.{org_id}"),
                ("service_date", f"gte.{from_date}"),
                ("service_date", f"lte.{to_date}"),
                ("order", "service_date.asc"),
            ],
        )
        return [_flatten_assignment(r) for r in rows]

    def create_assignment(self, row: dict[str, Any]) -> dict[str, Any]:
        rows = self._request(
            "create_assignment",
            "POST",
            "service_assignments",
            params=[("select", ASSIGNMENT_COLUMNS)],
            json=row,
            prefer="return=representation",
        )
        if not rows:
            raise BackendError("Assignment was not returned by the backend")
        return rows[0]

    def update_assignment(
        self, org_id: str, assignment_id: str, fields: dict[str, Any]
    ) -> dict[str, Any]:
        rows = self._request(
            "update_assignment",
            "PATCH",
            "service_assignments",
            params=[
                ("id", f"eq.{assignment_id}"),
                ("org_id", f"eq.{org_id}"),
                ("select", ASSIGNMENT_COLUMNS),
            ],
            json=fields,
            prefer="return=representation",
        )
        if not rows:
            raise KeyError(f"Assignment '{assignment_id}' not found")
        return rows[0]

    def delete_assignment(self, org_id: str, assignment_id: str) -> None:
        rows = self._request(
            "delete_assignment",
            "DELETE",
            "service_assignments",
            params=[
                ("id", f"eq.{assignment_id}"),
                ("org_id", f"eq.{org_id}"),
                ("select", "id"),
            ],
            prefer="return=representation",
        )
        if not rows:
            raise KeyError(f"Assignment '{assignment_id}' not found")

    # ── Health ──

    def ping(self) -> bool:
        try:
            self._request(
                "ping", "GET", "service_types", params=[("select", "id"), ("limit", "1")]
            )
        except BackendError:
            return False
        return True
