# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
FastAPI dependency injection: wire the store, repositories and services.
"""

from app.core.config import settings
from app.core.database import create_db_engine, init_schema
from app.core.logging import get_logger
from app.repositories.history_repository import CommitHistoryRepository
from app.repositories.rest_store import RestSchedulingStore
from app.repositories.sql_store import SqlSchedulingStore
from app.services.batch_service import BatchService
from app.services.scheduling_service import SchedulingService

logger = get_logger(__name__)


def _build_store():
    if settings.SCHEDULING_BACKEND == "sql":
        engine = create_db_engine()
        if settings.DB_AUTO_CREATE:
            init_schema(engine)
        logger.info("Scheduling store: sql (%s)", engine.url.get_backend_name())
        return SqlSchedulingStore(engine), engine
    if settings.SCHEDULING_BACKEND != "rest":
        raise RuntimeError(
            f"Unknown SCHEDULING_BACKEND '{settings.SCHEDULING_BACKEND}'. Expected 'rest' or 'sql'"
        )
    logger.info("Scheduling store: rest (%s)", settings.SUPABASE_URL)
    return RestSchedulingStore(), None


# ── Singleton instances ──
_store, _engine = _build_store()
_history_repo = CommitHistoryRepository()

_batch_service = BatchService(store=_store, history_repo=_history_repo)
_scheduling_service = SchedulingService(store=_store)


# ── FastAPI dependency functions ──
def get_store():
    return _store


def get_engine():
    return _engine


def get_history_repo() -> CommitHistoryRepository:
    return _history_repo


def get_batch_service() -> BatchService:
    return _batch_service


def get_scheduling_service() -> SchedulingService:
    return _scheduling_service
