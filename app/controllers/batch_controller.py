# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Batch rotation endpoints: directory, date sets, preview, commit.
Thin HTTP layer: delegates ALL logic to BatchService and the date-set helpers.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from app.core.dependencies import get_batch_service
from app.core.errors import BackendError, BatchValidationError, CommitInProgressError
from app.schemas.scheduling import (
    BatchRequest,
    CalendarMonth,
    CommitResponse,
    DateSetRequest,
    DateSetResponse,
    DefaultWindowResponse,
    DirectoryResponse,
    HistorySummaryResponse,
    PreviewResponse,
)
from app.services.batch_service import BatchService
from app.services.date_set import calendar_grid, compute_date_set, default_weekday_window

router = APIRouter(prefix="/api/v1/orgs/{org_id}", tags=["Batch Scheduling"])


# ── Configuring ──

@router.get("/directory", response_model=DirectoryResponse)
def get_directory(
    org_id: str,
    service: BatchService = Depends(get_batch_service),
):
    """Active service types and members to build a batch from."""
    try:
        return service.load_directory(org_id)
    except BackendError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/date-sets", response_model=DateSetResponse)
def compute_dates(org_id: str, payload: DateSetRequest):
    """Resolve a date-set selection to sorted ISO dates."""
    spec = payload.to_spec()
    try:
        dates = compute_date_set(spec.mode, spec.params())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"mode": spec.mode, "dates": dates, "count": len(dates)}


@router.get("/date-sets/default-window", response_model=DefaultWindowResponse)
def get_default_window(
    org_id: str,
    today: Optional[date] = Query(default=None, description="Reference day, defaults to today"),
):
    """The four-week window a weekday rule starts from."""
    start, end = default_weekday_window(today or date.today())
    return {"start_date": start, "end_date": end}


@router.get("/calendar", response_model=list[CalendarMonth])
def get_calendar(
    org_id: str,
    month_count: int = Query(default=3, description="3 or 6 months"),
    start: Optional[date] = Query(default=None, description="Any day of the first month"),
    selected: list[date] = Query(default=[]),
):
    """Month grids for the date picker, starting at the current month."""
    try:
        return calendar_grid(start or date.today(), month_count, selected)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ── Previewing ──

@router.post("/batch/preview", response_model=PreviewResponse)
def preview_batch(
    org_id: str,
    payload: BatchRequest,
    service: BatchService = Depends(get_batch_service),
):
    """Round-robin preview of a batch. Validation problems come back in ``errors``."""
    try:
        return service.preview(org_id, payload.to_config())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except BackendError as e:
        raise HTTPException(status_code=502, detail=str(e))


# ── Committing ──

@router.post("/batch/commit", status_code=201, response_model=CommitResponse)
def commit_batch(
    org_id: str,
    payload: BatchRequest,
    service: BatchService = Depends(get_batch_service),
):
    """Persist the batch as assignment rows in a single bulk insert."""
    try:
        return service.commit(org_id, payload.to_config())
    except BatchValidationError as e:
        return JSONResponse(status_code=400, content={"detail": str(e), "errors": e.errors})
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CommitInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except BackendError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/batch/history")
def get_batch_history(
    org_id: str,
    event_type: Optional[str] = None,
    limit: int = Query(default=None, ge=1, description="Max results"),
    service: BatchService = Depends(get_batch_service),
):
    """Audit log of batch commit attempts for the organisation."""
    return service.get_history(org_id, event_type=event_type, limit=limit)


@router.get("/batch/history/summary", response_model=HistorySummaryResponse)
def get_batch_history_summary(
    org_id: str,
    service: BatchService = Depends(get_batch_service),
):
    """Count of commit attempts by outcome."""
    return service.history_summary(org_id)
