"""
Campus Scheduler — Operation Tracking Schemas
===============================================

What:  The operation record kept in the tracker, and the 202 Accepted bodies
       returned by the bulk and async update endpoints.

Record lifecycle:
    (absent) ──begin──▶ processing ──complete──▶ completed
                              │
                              └────fail──────▶ failed

    Bulk jobs skip the `processing` write: their first record is terminal.
    `result` is present only on completed records, `error` only on failed ones.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import Field

from campus_scheduler.schemas.common import ApiModel


class OperationStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not OperationStatus.PROCESSING


def _now() -> datetime:
    return datetime.now(timezone.utc)


class OperationRecord(ApiModel):
    """Status record stored under an operation (or job) id."""
    operation_id: str
    status: OperationStatus
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    operation: Optional[str] = None
    data: Optional[Dict[str, Any]] = Field(default=None, description="Requested payload")
    result: Optional[Dict[str, Any]] = Field(default=None, description="Final resource state")
    error: Optional[str] = Field(default=None, description="Failure message")
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


class BulkJobAccepted(ApiModel):
    message: str = "Update job accepted"
    status_url: str
    job_id: str


class OperationAccepted(ApiModel):
    message: str = "Update request accepted"
    status_url: str
    operation_id: str
