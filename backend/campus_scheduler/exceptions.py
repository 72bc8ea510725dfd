"""
Campus Scheduler — Error Taxonomy
===================================

What:  Application-specific exceptions, an explicit error-kind enumeration,
       and the mapping layer that turns data-store errors into that taxonomy.
How:   Each exception carries a message, a context dict and an ErrorKind.
       Global exception handlers (registered in main.py) render them as
       structured JSON with the status code of their kind.
Who:   Raised by services and routes; caught by global handlers. Background
       tasks catch them locally and record the message on the operation.

Exception Hierarchy:
    SchedulerError (base)           ErrorKind.INTERNAL     → 500
    ├── ValidationError             ErrorKind.VALIDATION   → 400
    ├── ConflictError               ErrorKind.CONFLICT     → 409
    ├── NotFoundError               ErrorKind.NOT_FOUND    → 404
    ├── DatabaseError               ErrorKind.INTERNAL     → 500
    └── ServiceBusyError            ErrorKind.UNAVAILABLE  → 503
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Failure categories, independent of any data-access library."""

    VALIDATION = "validation_error"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "service_unavailable"
    INTERNAL = "internal_error"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
    ErrorKind.UNAVAILABLE: 503,
}


class SchedulerError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; returned only for client errors)
        kind:     ErrorKind deciding the HTTP status
    """

    kind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(SchedulerError):
    """
    Raised when input breaks a business rule or a data constraint.

    When:  end before start, unknown sort field, foreign key or not-null
           violations reported by the database.
    HTTP:  400 Bad Request
    """

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str = "Invalid input data",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class ConflictError(SchedulerError):
    """Raised on uniqueness violations (e.g. a duplicate course code). HTTP 409."""

    kind = ErrorKind.CONFLICT

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(SchedulerError):
    """
    Raised when a requested resource does not exist.

    `links` optionally carries hypermedia the error response should still
    offer (the collection URL, typically).
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
        links: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)
        self.links = links


class DatabaseError(SchedulerError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; details (SQL,
    constraint names) are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ServiceBusyError(SchedulerError):
    """Raised when the background task queue is full. HTTP 503 with Retry-After."""

    kind = ErrorKind.UNAVAILABLE

    def __init__(
        self,
        retry_after: int = 5,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            "Too many background operations are pending. "
            f"Please retry in {retry_after} seconds."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


# ══════════════════════════════════════════════════════════════════════════
# Data-store error mapping
# ══════════════════════════════════════════════════════════════════════════

# SQLSTATE codes (PostgreSQL) for integrity violations
_UNIQUE_VIOLATION = "23505"


def _sqlstate(exc: SQLAlchemyError) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _is_unique_violation(exc: IntegrityError) -> bool:
    if _sqlstate(exc) == _UNIQUE_VIOLATION:
        return True
    # SQLite: "UNIQUE constraint failed: courses.code"
    text = str(getattr(exc, "orig", exc)).lower()
    return "unique" in text or "duplicate key" in text


def translate_db_error(exc: Exception, resource: str = "resource") -> SchedulerError:
    """
    Map an exception raised by the data store onto the application taxonomy.

    Mapping:
        SchedulerError                  → returned unchanged
        IntegrityError (unique)         → ConflictError (409)
        IntegrityError (other), DataError → ValidationError (400)
        anything else                   → DatabaseError (500)
    """
    if isinstance(exc, SchedulerError):
        return exc

    if isinstance(exc, IntegrityError):
        if _is_unique_violation(exc):
            return ConflictError(
                message=f"A {resource} with these values already exists",
                context={"resource": resource},
            )
        return ValidationError(
            message=f"The {resource} violates a data constraint",
            context={"resource": resource, "constraint": type(exc.orig).__name__},
        )

    if isinstance(exc, DataError):
        return ValidationError(
            message=f"The {resource} contains invalid values",
            context={"resource": resource},
        )

    logger.error("Unexpected data-store error for %s: %s", resource, str(exc), exc_info=exc)
    return DatabaseError(context={"resource": resource, "error_type": type(exc).__name__})
