# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models: pure data structures, NO FastAPI dependency.
"""

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Member(BaseModel):
    """A schedulable person from the organisation directory."""
    id: str
    name: str


class ServiceType(BaseModel):
    """The category of duty being scheduled (e.g. sermon, greeting)."""
    id: str
    name: str
    frequency: str = "weekly"
    description: Optional[str] = None
    is_active: bool = True


class DateSetSpec(BaseModel):
    """
    How the dates of a batch are chosen.

    ``explicit`` uses ``dates`` as toggled in the calendar picker;
    ``weekday`` keeps every ``weekday`` (0=Sunday .. 6=Saturday) between
    ``start_date`` and ``end_date`` inclusive.
    """
    model_config = ConfigDict(frozen=True)

    mode: Literal["explicit", "weekday"] = "explicit"
    dates: tuple[date, ...] = ()
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    weekday: Optional[int] = Field(default=None, ge=0, le=6)

    def params(self) -> dict:
        if self.mode == "explicit":
            return {"dates": self.dates}
        return {
            "start": self.start_date,
            "end": self.end_date,
            "weekday": self.weekday,
        }


class BatchConfig(BaseModel):
    """Immutable description of one batch; preview is always derived from it."""
    model_config = ConfigDict(frozen=True)

    service_type_id: Optional[str] = None
    date_set: DateSetSpec = DateSetSpec()
    roster: tuple[str, ...] = ()

    @field_validator("roster")
    @classmethod
    def dedupe_roster(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        # keep first occurrence; selection order drives the rotation
        return tuple(dict.fromkeys(v))


class PreviewAssignment(BaseModel):
    """One row of a generated rotation, not yet persisted."""
    model_config = ConfigDict(frozen=True)

    date: str
    member_id: str
    member_name: str
