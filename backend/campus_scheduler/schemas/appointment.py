"""
Campus Scheduler — Appointment Schemas
========================================

What:  Request and response models for /appointments, including the bulk
       and async update payloads.
"""

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import Field, model_validator

from campus_scheduler.schemas.common import ApiModel, Link, UtcDatetime

AppointmentStatus = Literal["scheduled", "completed", "cancelled"]


class AppointmentCreate(ApiModel):
    schedule_id: int = Field(ge=1)
    user_id: str = Field(min_length=1, max_length=64)
    start_time: UtcDatetime
    end_time: UtcDatetime
    status: AppointmentStatus = "scheduled"
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_time_window(self) -> "AppointmentCreate":
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self


class AppointmentUpdate(ApiModel):
    """
    Partial update. Only the fields the client sends are applied; the time
    window is re-checked against the stored values by the service.
    """
    schedule_id: Optional[int] = Field(default=None, ge=1)
    user_id: Optional[str] = Field(default=None, min_length=1, max_length=64)
    start_time: Optional[UtcDatetime] = None
    end_time: Optional[UtcDatetime] = None
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None


class AppointmentBulkItem(AppointmentUpdate):
    """One entry of a bulk update: the target id plus the fields to change."""
    id: int = Field(ge=1)


class AppointmentBulkUpdateRequest(ApiModel):
    appointments: List[AppointmentBulkItem] = Field(min_length=1)


class AppointmentResponse(ApiModel):
    id: int
    schedule_id: int
    user_id: str
    start_time: datetime
    end_time: datetime
    status: str
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class AppointmentDetail(AppointmentResponse):
    """Single appointment with hypermedia links to related resources and actions."""
    links: Dict[str, Link] = Field(default_factory=dict, alias="_links")
