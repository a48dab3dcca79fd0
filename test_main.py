# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false

"""
Tests for Service Scheduling v1.0.0
API tests run against the SQLite-backed store (see conftest.py); the REST
store and the commit guard are exercised with mocks.
Run:  pytest test_main.py -v --cov=app --cov=main --cov-report=term-missing
"""

import httpx
from unittest.mock import patch, MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select

from main import app
from app.core.config import settings
from app.core.database import members, service_assignments, service_types
from app.core.dependencies import get_engine, get_history_repo, get_store
from app.core.errors import BackendError, BatchValidationError, CommitInProgressError
from app.models.domain import PreviewAssignment
from app.repositories.history_repository import CommitHistoryRepository
from app.repositories.rest_store import RestSchedulingStore
from app.services.batch_service import BatchService

client = TestClient(app)

ORG = "org-1"
OTHER_ORG = "org-2"

MEMBERS = [
    {"id": "m-alice", "org_id": ORG, "name": "Alice", "is_active": True},
    {"id": "m-bob", "org_id": ORG, "name": "Bob", "is_active": True},
    {"id": "m-carol", "org_id": ORG, "name": "Carol", "is_active": True},
    {"id": "m-dave", "org_id": ORG, "name": "Dave", "is_active": False},
    {"id": "m-zed", "org_id": OTHER_ORG, "name": "Zed", "is_active": True},
]
SERVICE_TYPES = [
    {"id": "st-sermon", "org_id": ORG, "name": "Sermon", "frequency": "weekly",
     "description": None, "is_active": True},
    {"id": "st-greet", "org_id": ORG, "name": "Greeting", "frequency": "weekly",
     "description": "Front door", "is_active": True},
    {"id": "st-old", "org_id": ORG, "name": "Archived", "frequency": "monthly",
     "description": None, "is_active": False},
    {"id": "st-zed", "org_id": OTHER_ORG, "name": "Choir", "frequency": "weekly",
     "description": None, "is_active": True},
]

SUNDAYS = ["2025-01-05", "2025-01-12", "2025-01-19"]


# ============================================
# Fixtures & helpers
# ============================================
@pytest.fixture(autouse=True)
def reset_state():
    """Reset the database and commit log, then re-seed one organisation."""
    with get_engine().begin() as conn:
        conn.execute(service_assignments.delete())
        conn.execute(service_types.delete())
        conn.execute(members.delete())
        conn.execute(members.insert(), MEMBERS)
        conn.execute(service_types.insert(), SERVICE_TYPES)
    get_history_repo().clear()
    yield


def _batch(roster=("m-alice", "m-bob"), dates=SUNDAYS, service_type_id="st-sermon"):
    return {
        "service_type_id": service_type_id,
        "date_set": {"mode": "explicit", "dates": list(dates)},
        "roster": list(roster),
    }


def _assignment_count():
    with get_engine().connect() as conn:
        return conn.execute(select(func.count()).select_from(service_assignments)).scalar()


def _mock_http_client(mock_client_class, status_code=200, body=None):
    mock_response = MagicMock()
    mock_response.status_code = status_code
    mock_response.content = b"x" if body is not None else b""
    mock_response.json.return_value = body
    mock_client = MagicMock()
    mock_client.__enter__ = MagicMock(return_value=mock_client)
    mock_client.__exit__ = MagicMock(return_value=False)
    mock_client.request.return_value = mock_response
    mock_client_class.return_value = mock_client
    return mock_client


# ============================================
# Health & Metrics
# ============================================
class TestHealth:
    def test_health_returns_ok(self):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == settings.SERVICE_NAME
        assert data["version"] == settings.SERVICE_VERSION
        assert data["backend"] == "sql"
        assert data["commits_in_flight"] == 0

    def test_readiness(self):
        response = client.get("/health/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_readiness_backend_down(self):
        with patch.object(get_store(), "ping", return_value=False):
            response = client.get("/health/ready")
        assert response.status_code == 503


class TestRequestID:
    def test_response_has_request_id_header(self):
        response = client.get("/health")
        assert "X-Request-ID" in response.headers

    def test_request_id_propagated(self):
        response = client.get("/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"


class TestMetrics:
    def test_metrics_returns_200(self):
        response = client.get("/metrics")
        assert response.status_code == 200

    def test_metrics_after_preview_and_commit(self):
        client.post(f"/api/v1/orgs/{ORG}/batch/preview", json=_batch())
        client.post(f"/api/v1/orgs/{ORG}/batch/commit", json=_batch())
        text = client.get("/metrics").text
        assert "scheduling_previews_generated_total" in text
        assert "scheduling_batches_committed_total" in text
        assert "scheduling_requests_total" in text


# ============================================
# Directory
# ============================================
class TestDirectory:
    def test_directory_lists_active_records_by_name(self):
        response = client.get(f"/api/v1/orgs/{ORG}/directory")
        assert response.status_code == 200
        data = response.json()
        assert [t["name"] for t in data["service_types"]] == ["Greeting", "Sermon"]
        assert [m["name"] for m in data["members"]] == ["Alice", "Bob", "Carol"]

    def test_directory_is_scoped_to_org(self):
        data = client.get(f"/api/v1/orgs/{OTHER_ORG}/directory").json()
        assert [m["id"] for m in data["members"]] == ["m-zed"]
        assert [t["id"] for t in data["service_types"]] == ["st-zed"]

    def test_directory_backend_error(self):
        with patch.object(get_store(), "list_members", side_effect=BackendError("JWT expired")):
            response = client.get(f"/api/v1/orgs/{ORG}/directory")
        assert response.status_code == 502
        assert response.json()["detail"] == "JWT expired"


# ============================================
# Date sets
# ============================================
class TestDateSets:
    def test_weekday_rule(self):
        response = client.post(f"/api/v1/orgs/{ORG}/date-sets", json={
            "mode": "weekday",
            "start_date": "2025-01-01",
            "end_date": "2025-01-31",
            "weekday": 3,
        })
        assert response.status_code == 200
        data = response.json()
        assert data["dates"] == [
            "2025-01-01", "2025-01-08", "2025-01-15", "2025-01-22", "2025-01-29",
        ]
        assert data["count"] == 5

    def test_explicit_sorted(self):
        response = client.post(f"/api/v1/orgs/{ORG}/date-sets", json={
            "mode": "explicit",
            "dates": ["2025-03-05", "2025-03-02"],
        })
        assert response.json()["dates"] == ["2025-03-02", "2025-03-05"]

    def test_reversed_range_is_empty(self):
        response = client.post(f"/api/v1/orgs/{ORG}/date-sets", json={
            "mode": "weekday",
            "start_date": "2025-02-01",
            "end_date": "2025-01-01",
            "weekday": 0,
        })
        assert response.status_code == 200
        assert response.json()["dates"] == []

    def test_invalid_weekday(self):
        response = client.post(f"/api/v1/orgs/{ORG}/date-sets", json={
            "mode": "weekday", "start_date": "2025-01-01", "end_date": "2025-01-31", "weekday": 7,
        })
        assert response.status_code == 422

    def test_invalid_mode(self):
        response = client.post(f"/api/v1/orgs/{ORG}/date-sets", json={"mode": "monthly"})
        assert response.status_code == 422

    def test_default_window(self):
        response = client.get(f"/api/v1/orgs/{ORG}/date-sets/default-window?today=2025-01-15")
        assert response.json() == {"start_date": "2025-01-12", "end_date": "2025-02-08"}

    def test_calendar(self):
        response = client.get(
            f"/api/v1/orgs/{ORG}/calendar",
            params={"month_count": 6, "start": "2025-01-20", "selected": ["2025-01-05"]},
        )
        assert response.status_code == 200
        data = response.json()
        assert len(data) == 6
        assert data[0]["month"] == "2025-01"
        assert data[0]["selected"] == ["2025-01-05"]

    def test_calendar_bad_month_count(self):
        response = client.get(f"/api/v1/orgs/{ORG}/calendar?month_count=4")
        assert response.status_code == 400


# ============================================
# Preview
# ============================================
class TestPreview:
    def test_round_robin_preview(self):
        response = client.post(f"/api/v1/orgs/{ORG}/batch/preview", json=_batch())
        assert response.status_code == 200
        data = response.json()
        assert data["errors"] == []
        assert data["total"] == 3
        assert [(a["date"], a["member_name"]) for a in data["assignments"]] == [
            ("2025-01-05", "Alice"),
            ("2025-01-12", "Bob"),
            ("2025-01-19", "Alice"),
        ]
        assert [(c["member_id"], c["count"]) for c in data["counts"]] == [
            ("m-alice", 2), ("m-bob", 1),
        ]

    def test_roster_order_not_name_order(self):
        data = client.post(
            f"/api/v1/orgs/{ORG}/batch/preview", json=_batch(roster=["m-carol", "m-alice"])
        ).json()
        assert [a["member_name"] for a in data["assignments"]] == ["Carol", "Alice", "Carol"]

    def test_dates_sorted_before_assignment(self):
        data = client.post(
            f"/api/v1/orgs/{ORG}/batch/preview",
            json=_batch(dates=["2025-01-19", "2025-01-05", "2025-01-12"]),
        ).json()
        assert data["dates"] == SUNDAYS
        assert data["assignments"][0]["member_id"] == "m-alice"

    def test_weekday_mode_preview(self):
        payload = {
            "service_type_id": "st-greet",
            "date_set": {
                "mode": "weekday", "start_date": "2025-01-01",
                "end_date": "2025-01-31", "weekday": 3,
            },
            "roster": ["m-bob", "m-carol"],
        }
        data = client.post(f"/api/v1/orgs/{ORG}/batch/preview", json=payload).json()
        assert data["total"] == 5
        assert [a["member_id"] for a in data["assignments"]] == [
            "m-bob", "m-carol", "m-bob", "m-carol", "m-bob",
        ]

    def test_unknown_member_placeholder(self):
        data = client.post(
            f"/api/v1/orgs/{ORG}/batch/preview", json=_batch(roster=["m-alice", "m-ghost"])
        ).json()
        assert data["total"] == 3
        assert data["assignments"][1]["member_name"] == settings.UNKNOWN_MEMBER_LABEL

    def test_missing_service_type_gives_empty_preview(self):
        response = client.post(
            f"/api/v1/orgs/{ORG}/batch/preview", json=_batch(service_type_id=None)
        )
        assert response.status_code == 200
        data = response.json()
        assert data["assignments"] == []
        assert "Select a service type" in data["errors"]

    def test_empty_roster_gives_empty_preview(self):
        data = client.post(f"/api/v1/orgs/{ORG}/batch/preview", json=_batch(roster=[])).json()
        assert data["assignments"] == []
        assert "Select at least one member" in data["errors"]

    def test_empty_dates_gives_empty_preview(self):
        data = client.post(f"/api/v1/orgs/{ORG}/batch/preview", json=_batch(dates=[])).json()
        assert data["assignments"] == []
        assert "Select at least one date" in data["errors"]

    def test_preview_is_repeatable(self):
        first = client.post(f"/api/v1/orgs/{ORG}/batch/preview", json=_batch()).json()
        second = client.post(f"/api/v1/orgs/{ORG}/batch/preview", json=_batch()).json()
        assert first == second

    def test_preview_writes_nothing(self):
        client.post(f"/api/v1/orgs/{ORG}/batch/preview", json=_batch())
        assert _assignment_count() == 0


# ============================================
# Commit
# ============================================
class TestCommit:
    def test_commit_creates_rows(self):
        response = client.post(f"/api/v1/orgs/{ORG}/batch/commit", json=_batch())
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "committed"
        assert data["created"] == 3
        assert _assignment_count() == 3

        listed = client.get(
            f"/api/v1/orgs/{ORG}/assignments",
            params={"from_date": "2025-01-01", "to_date": "2025-01-31"},
        ).json()
        assert [(a["service_date"], a["member"]["name"]) for a in listed] == [
            ("2025-01-05", "Alice"),
            ("2025-01-12", "Bob"),
            ("2025-01-19", "Alice"),
        ]
        assert {a["status"] for a in listed} == {"scheduled"}
        assert {a["service_type"]["id"] for a in listed} == {"st-sermon"}

    def test_commit_records_history(self):
        client.post(f"/api/v1/orgs/{ORG}/batch/commit", json=_batch())
        history = client.get(f"/api/v1/orgs/{ORG}/batch/history").json()
        assert history[-1]["event_type"] == "batch_committed"
        assert history[-1]["details"]["rows"] == 3
        assert history[-1]["details"]["first_date"] == "2025-01-05"

    def test_validation_blocks_commit(self):
        response = client.post(
            f"/api/v1/orgs/{ORG}/batch/commit", json=_batch(roster=[], dates=[])
        )
        assert response.status_code == 400
        body = response.json()
        assert "Select at least one member" in body["errors"]
        assert "Select at least one date" in body["errors"]
        assert _assignment_count() == 0
        history = client.get(
            f"/api/v1/orgs/{ORG}/batch/history", params={"event_type": "batch_rejected"}
        ).json()
        assert len(history) == 1

    def test_missing_service_type_blocks_commit(self):
        response = client.post(
            f"/api/v1/orgs/{ORG}/batch/commit", json=_batch(service_type_id="")
        )
        assert response.status_code == 400
        assert response.json()["errors"] == ["Select a service type"]

    def test_store_error_reported_verbatim(self):
        message = 'duplicate key value violates unique constraint "service_assignments_pkey"'
        with patch.object(get_store(), "bulk_insert_assignments", side_effect=BackendError(message)):
            response = client.post(f"/api/v1/orgs/{ORG}/batch/commit", json=_batch())
        assert response.status_code == 502
        assert response.json()["detail"] == message
        assert _assignment_count() == 0
        history = client.get(f"/api/v1/orgs/{ORG}/batch/history").json()
        assert history[-1]["event_type"] == "batch_failed"
        assert history[-1]["details"]["error"] == message

    def test_commit_with_unknown_member(self):
        response = client.post(
            f"/api/v1/orgs/{ORG}/batch/commit", json=_batch(roster=["m-ghost", "m-bob"])
        )
        assert response.status_code == 201
        assert response.json()["created"] == 3

    def test_repeated_commits_are_not_deduplicated(self):
        client.post(f"/api/v1/orgs/{ORG}/batch/commit", json=_batch())
        response = client.post(f"/api/v1/orgs/{ORG}/batch/commit", json=_batch())
        assert response.status_code == 201
        assert _assignment_count() == 6

    def test_history_is_per_org(self):
        client.post(f"/api/v1/orgs/{ORG}/batch/commit", json=_batch())
        assert client.get(f"/api/v1/orgs/{OTHER_ORG}/batch/history").json() == []

    def test_history_summary(self):
        client.post(f"/api/v1/orgs/{ORG}/batch/commit", json=_batch())
        client.post(f"/api/v1/orgs/{ORG}/batch/commit", json=_batch(dates=["2025-02-02"]))
        client.post(f"/api/v1/orgs/{ORG}/batch/commit", json=_batch(roster=[]))
        client.post(f"/api/v1/orgs/{OTHER_ORG}/batch/commit", json=_batch(roster=[]))
        summary = client.get(f"/api/v1/orgs/{ORG}/batch/history/summary").json()
        assert summary == {"total": 3, "by_type": {"batch_committed": 2, "batch_rejected": 1}}
        other = client.get(f"/api/v1/orgs/{OTHER_ORG}/batch/history/summary").json()
        assert other == {"total": 1, "by_type": {"batch_rejected": 1}}


class TestSqlStoreAtomicity:
    def test_bad_row_rolls_back_whole_batch(self):
        rows = [
            {"org_id": ORG, "service_type_id": "st-sermon", "member_id": "m-alice",
             "service_date": "2025-01-05", "status": "scheduled"},
            {"org_id": ORG, "service_type_id": "st-sermon", "member_id": "m-bob",
             "service_date": "2025-01-12", "status": "not-a-status"},
        ]
        with pytest.raises(BackendError):
            get_store().bulk_insert_assignments(rows)
        assert _assignment_count() == 0

    def test_empty_batch_is_noop(self):
        assert get_store().bulk_insert_assignments([]) == []


# ============================================
# Commit guard (service level)
# ============================================
class TestCommitGuard:
    def _service(self):
        store = MagicMock()
        store.list_members.return_value = [{"id": "a", "name": "A"}]
        store.bulk_insert_assignments.side_effect = lambda rows: rows
        return BatchService(store=store, history_repo=CommitHistoryRepository()), store

    def _preview(self):
        return [PreviewAssignment(date=d, member_id="a", member_name="A") for d in SUNDAYS]

    def test_single_bulk_insert_with_scheduled_rows(self):
        service, store = self._service()
        service.commit_batch(self._preview(), "org-x", "st-1")
        store.bulk_insert_assignments.assert_called_once()
        rows = store.bulk_insert_assignments.call_args[0][0]
        assert rows[0] == {
            "org_id": "org-x",
            "service_type_id": "st-1",
            "member_id": "a",
            "service_date": "2025-01-05",
            "status": "scheduled",
        }
        assert len(rows) == 3

    def test_identical_batch_rejected_while_in_flight(self):
        service, store = self._service()
        preview = self._preview()
        seen = {}

        def reentrant(rows):
            with pytest.raises(CommitInProgressError):
                service.commit_batch(preview, "org-x", "st-1")
            seen["in_flight"] = service.in_flight_count()
            return rows

        store.bulk_insert_assignments.side_effect = reentrant
        result = service.commit_batch(preview, "org-x", "st-1")
        assert result["created"] == 3
        assert seen["in_flight"] == 1
        assert service.in_flight_count() == 0

    def test_failure_releases_guard(self):
        service, store = self._service()
        store.bulk_insert_assignments.side_effect = BackendError("network down")
        with pytest.raises(BackendError):
            service.commit_batch(self._preview(), "org-x", "st-1")
        assert service.in_flight_count() == 0

        store.bulk_insert_assignments.side_effect = lambda rows: rows
        assert service.commit_batch(self._preview(), "org-x", "st-1")["created"] == 3

    def test_empty_preview_rejected(self):
        service, store = self._service()
        with pytest.raises(BatchValidationError):
            service.commit_batch([], "org-x", "st-1")
        store.bulk_insert_assignments.assert_not_called()


# ============================================
# Service types
# ============================================
class TestServiceTypes:
    def test_list_active(self):
        data = client.get(f"/api/v1/orgs/{ORG}/service-types").json()
        assert [t["id"] for t in data] == ["st-greet", "st-sermon"]

    def test_list_including_inactive(self):
        data = client.get(f"/api/v1/orgs/{ORG}/service-types?include_inactive=true").json()
        assert "st-old" in [t["id"] for t in data]

    def test_create(self):
        response = client.post(f"/api/v1/orgs/{ORG}/service-types", json={
            "name": "Worship", "frequency": "biweekly", "description": "Music team",
        })
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Worship"
        assert data["is_active"] is True
        names = [t["name"] for t in client.get(f"/api/v1/orgs/{ORG}/service-types").json()]
        assert "Worship" in names

    def test_create_blank_name(self):
        response = client.post(f"/api/v1/orgs/{ORG}/service-types", json={"name": "   "})
        assert response.status_code == 400

    def test_create_invalid_frequency(self):
        response = client.post(f"/api/v1/orgs/{ORG}/service-types", json={
            "name": "Daily prayer", "frequency": "daily",
        })
        assert response.status_code == 422

    def test_disable(self):
        response = client.patch(
            f"/api/v1/orgs/{ORG}/service-types/st-greet", json={"is_active": False}
        )
        assert response.status_code == 200
        assert response.json()["is_active"] is False
        ids = [t["id"] for t in client.get(f"/api/v1/orgs/{ORG}/service-types").json()]
        assert ids == ["st-sermon"]

    def test_toggle_other_org_not_found(self):
        response = client.patch(
            f"/api/v1/orgs/{ORG}/service-types/st-zed", json={"is_active": False}
        )
        assert response.status_code == 404

    def test_edit(self):
        response = client.put(f"/api/v1/orgs/{ORG}/service-types/st-greet", json={
            "name": "  Welcome team ", "frequency": "monthly", "description": "Side door",
        })
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Welcome team"
        assert data["frequency"] == "monthly"
        assert data["description"] == "Side door"
        assert data["is_active"] is True

    def test_edit_can_reactivate(self):
        response = client.put(f"/api/v1/orgs/{ORG}/service-types/st-old", json={
            "name": "Archived", "frequency": "monthly", "is_active": True,
        })
        assert response.status_code == 200
        ids = [t["id"] for t in client.get(f"/api/v1/orgs/{ORG}/service-types").json()]
        assert "st-old" in ids

    def test_edit_keeps_description_when_omitted(self):
        response = client.put(f"/api/v1/orgs/{ORG}/service-types/st-greet", json={
            "name": "Greeting", "frequency": "weekly",
        })
        assert response.json()["description"] == "Front door"

    def test_edit_blank_name(self):
        response = client.put(f"/api/v1/orgs/{ORG}/service-types/st-greet", json={
            "name": " ", "frequency": "weekly",
        })
        assert response.status_code == 400

    def test_edit_not_found(self):
        response = client.put(f"/api/v1/orgs/{ORG}/service-types/st-zed", json={
            "name": "Choir", "frequency": "weekly",
        })
        assert response.status_code == 404


# ============================================
# Assignments & workload
# ============================================
class TestAssignments:
    def test_filters(self):
        client.post(f"/api/v1/orgs/{ORG}/batch/commit", json=_batch())
        client.post(
            f"/api/v1/orgs/{ORG}/batch/commit",
            json=_batch(roster=["m-carol"], service_type_id="st-greet"),
        )
        base = {"from_date": "2025-01-01", "to_date": "2025-01-31"}
        assert len(client.get(f"/api/v1/orgs/{ORG}/assignments", params=base).json()) == 6
        by_member = client.get(
            f"/api/v1/orgs/{ORG}/assignments", params={**base, "member_id": "m-carol"}
        ).json()
        assert len(by_member) == 3
        by_type = client.get(
            f"/api/v1/orgs/{ORG}/assignments", params={**base, "service_type_id": "st-sermon"}
        ).json()
        assert {a["member"]["id"] for a in by_type} == {"m-alice", "m-bob"}
        cancelled = client.get(
            f"/api/v1/orgs/{ORG}/assignments", params={**base, "status": "cancelled"}
        ).json()
        assert cancelled == []

    def test_range_is_inclusive(self):
        client.post(f"/api/v1/orgs/{ORG}/batch/commit", json=_batch())
        data = client.get(
            f"/api/v1/orgs/{ORG}/assignments",
            params={"from_date": "2025-01-05", "to_date": "2025-01-12"},
        ).json()
        assert [a["service_date"] for a in data] == ["2025-01-05", "2025-01-12"]

    def test_reversed_range(self):
        response = client.get(
            f"/api/v1/orgs/{ORG}/assignments",
            params={"from_date": "2025-02-01", "to_date": "2025-01-01"},
        )
        assert response.status_code == 400

    def _create(self, **overrides):
        body = {
            "service_type_id": "st-sermon",
            "member_id": "m-carol",
            "service_date": "2025-03-02",
            "sermon_title": "Grace",
            "notes": "Bring slides",
            **overrides,
        }
        return client.post(f"/api/v1/orgs/{ORG}/assignments", json=body)

    def test_create_single(self):
        response = self._create()
        assert response.status_code == 201
        data = response.json()
        assert data["service_date"] == "2025-03-02"
        assert data["sermon_title"] == "Grace"
        assert data["status"] == "scheduled"
        listed = client.get(
            f"/api/v1/orgs/{ORG}/assignments",
            params={"from_date": "2025-03-01", "to_date": "2025-03-31"},
        ).json()
        assert [a["id"] for a in listed] == [data["id"]]
        assert listed[0]["notes"] == "Bring slides"
        assert listed[0]["member"]["name"] == "Carol"

    def test_create_with_status(self):
        assert self._create(status="completed").json()["status"] == "completed"

    def test_create_invalid_status(self):
        assert self._create(status="maybe").status_code == 422

    def test_update_changes_only_sent_fields(self):
        assignment_id = self._create().json()["id"]
        response = client.patch(
            f"/api/v1/orgs/{ORG}/assignments/{assignment_id}",
            json={"member_id": "m-alice", "status": "cancelled"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["member_id"] == "m-alice"
        assert data["status"] == "cancelled"
        assert data["sermon_title"] == "Grace"
        assert data["service_date"] == "2025-03-02"

    def test_update_can_clear_notes(self):
        assignment_id = self._create().json()["id"]
        data = client.patch(
            f"/api/v1/orgs/{ORG}/assignments/{assignment_id}", json={"notes": None}
        ).json()
        assert data["notes"] is None

    def test_update_moves_date(self):
        assignment_id = self._create().json()["id"]
        data = client.patch(
            f"/api/v1/orgs/{ORG}/assignments/{assignment_id}",
            json={"service_date": "2025-03-09"},
        ).json()
        assert data["service_date"] == "2025-03-09"

    def test_update_nothing(self):
        assignment_id = self._create().json()["id"]
        response = client.patch(f"/api/v1/orgs/{ORG}/assignments/{assignment_id}", json={})
        assert response.status_code == 400

    def test_update_cannot_clear_member(self):
        assignment_id = self._create().json()["id"]
        response = client.patch(
            f"/api/v1/orgs/{ORG}/assignments/{assignment_id}", json={"member_id": None}
        )
        assert response.status_code == 400

    def test_update_not_found(self):
        response = client.patch(
            f"/api/v1/orgs/{ORG}/assignments/missing", json={"status": "completed"}
        )
        assert response.status_code == 404

    def test_update_other_org_not_found(self):
        assignment_id = self._create().json()["id"]
        response = client.patch(
            f"/api/v1/orgs/{OTHER_ORG}/assignments/{assignment_id}", json={"status": "completed"}
        )
        assert response.status_code == 404

    def test_delete(self):
        assignment_id = self._create().json()["id"]
        response = client.delete(f"/api/v1/orgs/{ORG}/assignments/{assignment_id}")
        assert response.status_code == 200
        assert response.json() == {"status": "deleted", "assignment_id": assignment_id}
        assert _assignment_count() == 0

    def test_delete_not_found(self):
        response = client.delete(f"/api/v1/orgs/{ORG}/assignments/missing")
        assert response.status_code == 404

    def test_delete_other_org_not_found(self):
        assignment_id = self._create().json()["id"]
        response = client.delete(f"/api/v1/orgs/{OTHER_ORG}/assignments/{assignment_id}")
        assert response.status_code == 404
        assert _assignment_count() == 1


class TestWorkload:
    def test_overloaded_and_underutilized(self):
        dates = [f"2025-01-{d:02d}" for d in (5, 12, 19, 26)] + ["2025-02-02", "2025-02-09"]
        client.post(f"/api/v1/orgs/{ORG}/batch/commit", json=_batch(roster=["m-alice"], dates=dates))
        data = client.get(
            f"/api/v1/orgs/{ORG}/workload",
            params={"from_date": "2025-01-01", "to_date": "2025-02-28"},
        ).json()
        by_id = {w["member_id"]: w for w in data}
        assert set(by_id) == {"m-alice", "m-bob", "m-carol"}
        assert by_id["m-alice"]["total_count"] == 6
        assert by_id["m-alice"]["status"] == "overloaded"
        assert by_id["m-alice"]["last_service_date"] == "2025-02-09"
        assert by_id["m-alice"]["service_types"] == [{"name": "Sermon", "count": 6}]
        assert by_id["m-bob"]["status"] == "underutilized"
        assert by_id["m-alice"]["average_workload"] == 2.0

    def test_balanced(self):
        dates = [f"2025-01-{d:02d}" for d in (5, 12, 19)]
        client.post(
            f"/api/v1/orgs/{ORG}/batch/commit",
            json=_batch(roster=["m-alice", "m-bob", "m-carol"], dates=dates),
        )
        data = client.get(
            f"/api/v1/orgs/{ORG}/workload",
            params={"from_date": "2025-01-01", "to_date": "2025-01-31"},
        ).json()
        assert {w["status"] for w in data} == {"balanced"}


# ============================================
# REST store (hosted backend)
# ============================================
class TestRestStore:
    def _store(self):
        return RestSchedulingStore(base_url="http://backend.test/", api_key="anon-key", timeout=1.0)

    @patch("app.repositories.rest_store.httpx.Client")
    def test_list_members_query(self, mock_client_class):
        mock_client = _mock_http_client(
            mock_client_class, body=[{"id": 7, "name": "Alice"}]
        )
        result = self._store().list_members(ORG)
        assert result == [{"id": "7", "name": "Alice"}]
        args, kwargs = mock_client.request.call_args
        assert args == ("GET", "http://backend.test/rest/v1/members")
        assert ("org_id", f"eq.{ORG}") in kwargs["params"]
        assert ("is_active", "eq.true") in kwargs["params"]
        assert ("order", "name.asc") in kwargs["params"]
        assert kwargs["headers"]["apikey"] == "anon-key"
        assert kwargs["headers"]["Authorization"] == "Bearer anon-key"

    @patch("app.repositories.rest_store.httpx.Client")
    def test_bulk_insert_single_request(self, mock_client_class):
        rows = [
            {"org_id": ORG, "service_type_id": "st", "member_id": "a",
             "service_date": d, "status": "scheduled"}
            for d in SUNDAYS
        ]
        mock_client = _mock_http_client(mock_client_class, status_code=201, body=rows)
        assert self._store().bulk_insert_assignments(rows) == rows
        mock_client.request.assert_called_once()
        args, kwargs = mock_client.request.call_args
        assert args == ("POST", "http://backend.test/rest/v1/service_assignments")
        assert kwargs["json"] == rows
        assert kwargs["headers"]["Prefer"] == "return=representation"

    @patch("app.repositories.rest_store.httpx.Client")
    def test_bulk_insert_empty_skips_request(self, mock_client_class):
        assert self._store().bulk_insert_assignments([]) == []
        mock_client_class.assert_not_called()

    @patch("app.repositories.rest_store.httpx.Client")
    def test_error_message_verbatim(self, mock_client_class):
        _mock_http_client(
            mock_client_class,
            status_code=409,
            body={"code": "23505", "message": "duplicate key value violates unique constraint"},
        )
        with pytest.raises(BackendError, match="duplicate key value violates unique constraint"):
            self._store().bulk_insert_assignments([{"service_date": "2025-01-05"}])

    @patch("app.repositories.rest_store.httpx.Client")
    def test_transport_failure(self, mock_client_class):
        mock_client = _mock_http_client(mock_client_class)
        mock_client.request.side_effect = httpx.ConnectError("connection refused")
        with pytest.raises(BackendError, match="connection refused"):
            self._store().list_service_types(ORG)

    @patch("app.repositories.rest_store.httpx.Client")
    def test_list_assignments_flattened(self, mock_client_class):
        _mock_http_client(mock_client_class, body=[{
            "id": 1, "service_date": "2025-01-05", "sermon_title": None, "notes": None,
            "status": "scheduled",
            "service_types": {"id": "st", "name": "Sermon", "frequency": "weekly"},
            "members": {"id": "a", "name": "Alice"},
        }])
        result = self._store().list_assignments(ORG, "2025-01-01", "2025-01-31")
        assert result[0]["id"] == "1"
        assert result[0]["member"]["name"] == "Alice"
        assert result[0]["service_type"]["name"] == "Sermon"

    @patch("app.repositories.rest_store.httpx.Client")
    def test_toggle_missing_service_type(self, mock_client_class):
        _mock_http_client(mock_client_class, body=[])
        with pytest.raises(KeyError):
            self._store().set_service_type_active(ORG, "nope", False)

    @patch("app.repositories.rest_store.httpx.Client")
    def test_create_service_type_without_representation(self, mock_client_class):
        _mock_http_client(mock_client_class, status_code=201, body=[])
        with pytest.raises(BackendError, match="Service type was not returned"):
            self._store().create_service_type(ORG, "Sermon", "weekly")

    @patch("app.repositories.rest_store.httpx.Client")
    def test_update_service_type_query(self, mock_client_class):
        record = {"id": "st", "name": "Sermon", "frequency": "monthly",
                  "description": None, "is_active": True}
        mock_client = _mock_http_client(mock_client_class, body=[record])
        result = self._store().update_service_type(ORG, "st", {"frequency": "monthly"})
        assert result == record
        args, kwargs = mock_client.request.call_args
        assert args == ("PATCH", "http://backend.test/rest/v1/service_types")
        assert ("id", "eq.st") in kwargs["params"]
        assert ("org_id", f"eq.{ORG}") in kwargs["params"]
        assert kwargs["json"] == {"frequency": "monthly"}

    @patch("app.repositories.rest_store.httpx.Client")
    def test_create_assignment_without_representation(self, mock_client_class):
        _mock_http_client(mock_client_class, status_code=201, body=[])
        with pytest.raises(BackendError, match="Assignment was not returned"):
            self._store().create_assignment({"org_id": ORG, "service_date": "2025-01-05"})

    @patch("app.repositories.rest_store.httpx.Client")
    def test_update_missing_assignment(self, mock_client_class):
        _mock_http_client(mock_client_class, body=[])
        with pytest.raises(KeyError):
            self._store().update_assignment(ORG, "nope", {"status": "completed"})

    @patch("app.repositories.rest_store.httpx.Client")
    def test_delete_assignment_query(self, mock_client_class):
        mock_client = _mock_http_client(mock_client_class, body=[{"id": "a-1"}])
        assert self._store().delete_assignment(ORG, "a-1") is None
        args, kwargs = mock_client.request.call_args
        assert args == ("DELETE", "http://backend.test/rest/v1/service_assignments")
        assert ("id", "eq.a-1") in kwargs["params"]
        assert ("org_id", f"eq.{ORG}") in kwargs["params"]

    @patch("app.repositories.rest_store.httpx.Client")
    def test_delete_missing_assignment(self, mock_client_class):
        _mock_http_client(mock_client_class, body=[])
        with pytest.raises(KeyError):
            self._store().delete_assignment(ORG, "nope")

    @patch("app.repositories.rest_store.httpx.Client")
    def test_ping(self, mock_client_class):
        _mock_http_client(mock_client_class, status_code=503, body={"message": "down"})
        assert self._store().ping() is False
