# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Service types, single assignments and workload endpoints.
Thin HTTP layer: delegates ALL logic to SchedulingService.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.dependencies import get_scheduling_service
from app.core.errors import BackendError
from app.models.domain import ServiceType
from app.schemas.scheduling import (
    AssignmentCreateRequest,
    AssignmentResponse,
    AssignmentUpdateRequest,
    ServiceTypeCreateRequest,
    ServiceTypeReplaceRequest,
    ServiceTypeUpdateRequest,
)
from app.services.scheduling_service import SchedulingService

router = APIRouter(prefix="/api/v1/orgs/{org_id}", tags=["Scheduling"])


# ── Service Types ──

@router.get("/service-types", response_model=list[ServiceType])
def list_service_types(
    org_id: str,
    include_inactive: bool = False,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """List service types (active only unless ``include_inactive``)."""
    try:
        return service.list_service_types(org_id, include_inactive=include_inactive)
    except BackendError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/service-types", status_code=201, response_model=ServiceType)
def create_service_type(
    org_id: str,
    payload: ServiceTypeCreateRequest,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Create a service type for the organisation."""
    try:
        return service.create_service_type(
            org_id,
            name=payload.name,
            frequency=payload.frequency,
            description=payload.description,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except BackendError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.patch("/service-types/{service_type_id}", response_model=ServiceType)
def toggle_service_type(
    org_id: str,
    service_type_id: str,
    payload: ServiceTypeUpdateRequest,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Enable or disable a service type."""
    try:
        return service.set_service_type_active(org_id, service_type_id, payload.is_active)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e.args[0]))
    except BackendError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.put("/service-types/{service_type_id}", response_model=ServiceType)
def replace_service_type(
    org_id: str,
    service_type_id: str,
    payload: ServiceTypeReplaceRequest,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Edit a service type's name, frequency, description and active flag."""
    try:
        return service.update_service_type(
            org_id,
            service_type_id,
            name=payload.name,
            frequency=payload.frequency,
            description=payload.description,
            is_active=payload.is_active,
        )
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e.args[0]))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except BackendError as e:
        raise HTTPException(status_code=502, detail=str(e))


# ── Assignments ──

@router.get("/assignments")
def list_assignments(
    org_id: str,
    from_date: date = Query(..., description="First day, inclusive"),
    to_date: date = Query(..., description="Last day, inclusive"),
    service_type_id: Optional[str] = None,
    member_id: Optional[str] = None,
    status: Optional[str] = Query(default=None, pattern="^(scheduled|completed|cancelled)$"),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Assignments between two dates, ascending, with optional filters."""
    try:
        return service.list_assignments(
            org_id,
            from_date.isoformat(),
            to_date.isoformat(),
            service_type_id=service_type_id,
            member_id=member_id,
            status=status,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except BackendError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/assignments", status_code=201, response_model=AssignmentResponse)
def create_assignment(
    org_id: str,
    payload: AssignmentCreateRequest,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Schedule one member for one date, with optional sermon title and notes."""
    try:
        return service.create_assignment(
            org_id,
            service_type_id=payload.service_type_id,
            member_id=payload.member_id,
            service_date=payload.service_date.isoformat(),
            sermon_title=payload.sermon_title,
            notes=payload.notes,
            status=payload.status,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except BackendError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.patch("/assignments/{assignment_id}", response_model=AssignmentResponse)
def update_assignment(
    org_id: str,
    assignment_id: str,
    payload: AssignmentUpdateRequest,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Change some fields of an existing assignment."""
    try:
        return service.update_assignment(
            org_id, assignment_id, payload.model_dump(exclude_unset=True)
        )
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e.args[0]))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except BackendError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.delete("/assignments/{assignment_id}")
def delete_assignment(
    org_id: str,
    assignment_id: str,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Remove an assignment."""
    try:
        return service.delete_assignment(org_id, assignment_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e.args[0]))
    except BackendError as e:
        raise HTTPException(status_code=502, detail=str(e))


# ── Workload ──

@router.get("/workload")
def get_workload(
    org_id: str,
    from_date: date = Query(...),
    to_date: date = Query(...),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Per-member assignment load over a date range."""
    try:
        return service.workload_stats(org_id, from_date.isoformat(), to_date.isoformat())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except BackendError as e:
        raise HTTPException(status_code=502, detail=str(e))
