"""Request and response models for /schedules."""

from datetime import datetime
from typing import Dict, Optional

from pydantic import Field, model_validator

from campus_scheduler.schemas.common import ApiModel, Link, UtcDatetime


class ScheduleCreate(ApiModel):
    course_id: Optional[int] = Field(default=None, ge=1)
    owner_id: str = Field(min_length=1, max_length=64)
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = Field(default=None, max_length=255)
    start_time: UtcDatetime
    end_time: UtcDatetime

    @model_validator(mode="after")
    def check_time_window(self) -> "ScheduleCreate":
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self


class ScheduleUpdate(ApiModel):
    course_id: Optional[int] = Field(default=None, ge=1)
    owner_id: Optional[str] = Field(default=None, min_length=1, max_length=64)
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = Field(default=None, max_length=255)
    start_time: Optional[UtcDatetime] = None
    end_time: Optional[UtcDatetime] = None


class ScheduleResponse(ApiModel):
    id: int
    course_id: Optional[int] = None
    owner_id: str
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    start_time: datetime
    end_time: datetime
    created_at: datetime
    updated_at: datetime


class ScheduleDetail(ScheduleResponse):
    links: Dict[str, Link] = Field(default_factory=dict, alias="_links")
