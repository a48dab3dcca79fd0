# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Request / Response schemas: API contract definitions.
These are Pydantic models used ONLY at the controller (HTTP) boundary.
"""

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field

from app.models.domain import BatchConfig, DateSetSpec, Member, ServiceType


# ── Date-set Schemas ──

class DateSetRequest(BaseModel):
    mode: Literal["explicit", "weekday"] = Field(
        default="explicit", description="explicit: toggled dates, weekday: rule over a range"
    )
    dates: list[date] = Field(default_factory=list, description="Toggled dates (explicit mode)")
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    weekday: Optional[int] = Field(
        default=None, ge=0, le=6, description="0=Sunday .. 6=Saturday (weekday mode)"
    )

    def to_spec(self) -> DateSetSpec:
        return DateSetSpec(
            mode=self.mode,
            dates=tuple(self.dates),
            start_date=self.start_date,
            end_date=self.end_date,
            weekday=self.weekday,
        )


class DateSetResponse(BaseModel):
    mode: str
    dates: list[str]
    count: int


class DefaultWindowResponse(BaseModel):
    start_date: str
    end_date: str


class CalendarMonth(BaseModel):
    month: str
    leading_blanks: int
    cells: list[Optional[str]]
    selected: list[str]


# ── Batch Schemas ──

class BatchRequest(BaseModel):
    service_type_id: Optional[str] = Field(default=None, description="Service type to schedule")
    date_set: DateSetRequest = Field(default_factory=DateSetRequest)
    roster: list[str] = Field(
        default_factory=list, description="Member ids in selection order"
    )

    def to_config(self) -> BatchConfig:
        return BatchConfig(
            service_type_id=self.service_type_id or None,
            date_set=self.date_set.to_spec(),
            roster=tuple(self.roster),
        )


class PreviewRow(BaseModel):
    date: str
    member_id: str
    member_name: str


class MemberCount(BaseModel):
    member_id: str
    member_name: Optional[str] = None
    count: int


class PreviewResponse(BaseModel):
    service_type_id: Optional[str] = None
    dates: list[str]
    assignments: list[PreviewRow]
    counts: list[MemberCount]
    total: int
    errors: list[str]


class CommitResponse(BaseModel):
    status: str
    created: int
    assignments: list[dict]


# ── Directory Schemas ──

class DirectoryResponse(BaseModel):
    service_types: list[ServiceType]
    members: list[Member]


class ServiceTypeCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    frequency: str = Field(
        default="weekly",
        pattern="^(weekly|biweekly|monthly|once)$",
        description="How often the service recurs",
    )
    description: Optional[str] = Field(default=None, max_length=2000)


class ServiceTypeUpdateRequest(BaseModel):
    is_active: bool


class ServiceTypeReplaceRequest(ServiceTypeCreateRequest):
    is_active: Optional[bool] = None


# ── Assignment Schemas ──

STATUS_PATTERN = "^(scheduled|completed|cancelled)$"


class AssignmentCreateRequest(BaseModel):
    service_type_id: str = Field(..., min_length=1)
    member_id: str = Field(..., min_length=1)
    service_date: date
    sermon_title: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = None
    status: Optional[str] = Field(default=None, pattern=STATUS_PATTERN)


class AssignmentUpdateRequest(BaseModel):
    """Only the fields sent are changed."""
    service_type_id: Optional[str] = Field(default=None, min_length=1)
    member_id: Optional[str] = Field(default=None, min_length=1)
    service_date: Optional[date] = None
    sermon_title: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = None
    status: Optional[str] = Field(default=None, pattern=STATUS_PATTERN)


class AssignmentResponse(BaseModel):
    id: str
    service_type_id: str
    member_id: str
    service_date: str
    sermon_title: Optional[str] = None
    notes: Optional[str] = None
    status: str


class HistorySummaryResponse(BaseModel):
    total: int
    by_type: dict[str, int]
