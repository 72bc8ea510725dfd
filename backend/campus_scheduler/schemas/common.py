"""
Campus Scheduler — Shared Schema Building Blocks
==================================================

What:  The camelCase base model, UTC datetime handling, pagination and
       hypermedia envelopes, and the error/health response formats.
Who:   Every resource schema module and the route handlers.
"""

from datetime import datetime, timezone
from typing import Annotated, Dict, Generic, List, Optional, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def as_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class ApiModel(BaseModel):
    """Base for every API schema: camelCase on the wire, ORM-readable."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ══════════════════════════════════════════════════════════════════════════
# Hypermedia
# ══════════════════════════════════════════════════════════════════════════


class Link(ApiModel):
    """A related URL plus the HTTP method that applies to it."""
    href: str = Field(description="Absolute URL")
    method: str = Field(default="GET", description="HTTP method for this link")


# ══════════════════════════════════════════════════════════════════════════
# Pagination
# ══════════════════════════════════════════════════════════════════════════

T = TypeVar("T")


class PaginationMeta(ApiModel):
    total: int = Field(description="Rows matching the filters")
    page: int = Field(description="Current page (1-based)")
    limit: int = Field(description="Page size")
    total_pages: int = Field(description="ceil(total / limit)")


class Page(ApiModel, Generic[T]):
    """
    Offset-paginated collection envelope.

    `_links` holds navigation URLs: self always; first/last when there is at
    least one page; prev/next only when such a page exists.
    """
    data: List[T]
    pagination: PaginationMeta
    links: Dict[str, str] = Field(alias="_links")


# ══════════════════════════════════════════════════════════════════════════
# Error & Health
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "conflict",
            "message": "A course with these values already exists",
            "details": {"resource": "course"},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class MessageResponse(ApiModel):
    message: str


class HealthResponse(ApiModel):
    """Health check response showing service and dependency status."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    operation_store: str = Field(description="Operation store: available, unavailable")
    pending_operations: int = Field(description="Tasks queued or running in the background")
    uptime_seconds: float = Field(description="Seconds since service started")
