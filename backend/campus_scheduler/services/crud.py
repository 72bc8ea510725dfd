"""
Campus Scheduler — Generic CRUD Service
=========================================

What:  The single-operation data access every resource shares: paginated
       listing, lookup, create, partial update, delete.
How:   Subclasses name their model, their resource label and which columns
       may be sorted on; each method performs one ORM operation and flushes
       inside the caller's session so constraint errors surface here.
Who:   AppointmentService, ScheduleService, CourseService,
       CourseMembershipService.

Error Handling:
    SchedulerError subclasses propagate unchanged. Anything the data store
    raises goes through translate_db_error():
        unique violation        → ConflictError   (409)
        other integrity / data  → ValidationError (400)
        anything else           → DatabaseError   (500)

Transactions:
    Methods flush but never commit. The request dependency commits (or
    rolls back) once the handler returns; background tasks commit their own
    sessions.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar, Dict, Generic, List, Mapping, Optional, Sequence, Type, TypeVar

from pydantic.alias_generators import to_camel
from sqlalchemy import asc, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from campus_scheduler.database import Base
from campus_scheduler.exceptions import (
    NotFoundError,
    SchedulerError,
    ValidationError,
    translate_db_error,
)
from campus_scheduler.schemas.common import as_utc

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


@dataclass
class ListQuery:
    """Validated listing parameters."""
    page: int = 1
    limit: int = 10
    sort_by: Optional[str] = None
    order: str = "DESC"
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class CrudService(Generic[ModelT]):
    """Base class; see module docstring."""

    model: ClassVar[Type[Base]]
    resource: ClassVar[str] = "resource"
    sortable: ClassVar[Sequence[str]] = ("id", "created_at")
    default_sort: ClassVar[str] = "created_at"
    # Models with start_time/end_time accept startDate/endDate filters
    time_filtered: ClassVar[bool] = False

    # ── Listing ───────────────────────────────────────────────────────────

    def _sort_column(self, sort_by: Optional[str]):
        name = sort_by or self.default_sort
        allowed = {}
        for column in self.sortable:
            allowed[column] = column
            allowed[to_camel(column)] = column
        if name not in allowed:
            raise ValidationError(
                message=f"Cannot sort by '{name}'",
                field="sortBy",
                context={"allowed": sorted(to_camel(c) for c in self.sortable)},
            )
        return getattr(self.model, allowed[name])

    def _conditions(self, query: ListQuery, filters: Mapping[str, Any]) -> List[Any]:
        conditions = [
            getattr(self.model, column) == value
            for column, value in filters.items()
            if value is not None
        ]
        if self.time_filtered:
            if query.start_date is not None:
                conditions.append(self.model.start_time >= as_utc(query.start_date))
            if query.end_date is not None:
                conditions.append(self.model.end_time <= as_utc(query.end_date))
        return conditions

    async def list(
        self,
        db: AsyncSession,
        query: ListQuery,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> tuple[List[ModelT], int]:
        """
        One page of rows plus the total count matching the filters.

        Ordering: the requested column, then id in the same direction, so
        rows with equal sort keys never swap between pages.
        """
        direction = query.order.upper()
        if direction not in ("ASC", "DESC"):
            raise ValidationError(
                message=f"Invalid order '{query.order}'. Must be ASC or DESC",
                field="order",
            )
        sort_column = self._sort_column(query.sort_by)
        conditions = self._conditions(query, filters or {})
        order_fn = asc if direction == "ASC" else desc

        try:
            stmt = (
                select(self.model)
                .where(*conditions)
                .order_by(order_fn(sort_column), order_fn(self.model.id))
                .limit(query.limit)
                .offset((query.page - 1) * query.limit)
            )
            rows = list((await db.execute(stmt)).scalars().all())

            count_stmt = select(func.count()).select_from(self.model).where(*conditions)
            total = (await db.execute(count_stmt)).scalar() or 0
        except SchedulerError:
            raise
        except Exception as e:
            raise translate_db_error(e, self.resource) from e

        return rows, total

    async def find_all(self, db: AsyncSession, **filters: Any) -> List[ModelT]:
        """Unpaginated rows matching equality filters, oldest first."""
        try:
            stmt = (
                select(self.model)
                .where(*(getattr(self.model, k) == v for k, v in filters.items()))
                .order_by(asc(self.model.id))
            )
            return list((await db.execute(stmt)).scalars().all())
        except Exception as e:
            raise translate_db_error(e, self.resource) from e

    # ── Single rows ───────────────────────────────────────────────────────

    async def find(self, db: AsyncSession, resource_id: int) -> Optional[ModelT]:
        try:
            return await db.get(self.model, resource_id)
        except Exception as e:
            raise translate_db_error(e, self.resource) from e

    async def get(self, db: AsyncSession, resource_id: int) -> ModelT:
        """Like find(), but a missing row raises NotFoundError."""
        obj = await self.find(db, resource_id)
        if obj is None:
            raise NotFoundError(resource=self.resource, resource_id=resource_id)
        return obj

    def validate(self, obj: ModelT) -> None:
        """Cross-field rules checked before every flush. Default: none."""

    async def create(self, db: AsyncSession, data: Dict[str, Any]) -> ModelT:
        obj = self.model(**data)
        try:
            self.validate(obj)
            db.add(obj)
            await db.flush()
        except SchedulerError:
            raise
        except Exception as e:
            raise translate_db_error(e, self.resource) from e
        logger.info("Created %s %s", self.resource, obj.id)
        return obj

    async def update(
        self,
        db: AsyncSession,
        resource_id: int,
        changes: Mapping[str, Any],
    ) -> ModelT:
        """Apply a partial update (only the keys present in `changes`)."""
        obj = await self.get(db, resource_id)
        try:
            for key, value in changes.items():
                setattr(obj, key, value)
            self.validate(obj)
            await db.flush()
        except SchedulerError:
            raise
        except Exception as e:
            raise translate_db_error(e, self.resource) from e
        logger.info("Updated %s %s (%s)", self.resource, resource_id, ", ".join(changes))
        return obj

    async def delete(self, db: AsyncSession, resource_id: int) -> None:
        obj = await self.get(db, resource_id)
        try:
            await db.delete(obj)
            await db.flush()
        except Exception as e:
            raise translate_db_error(e, self.resource) from e
        logger.info("Deleted %s %s", self.resource, resource_id)


class TimeWindowMixin:
    """validate() rule for models with start_time/end_time."""

    def validate(self, obj) -> None:
        if obj.start_time is None or obj.end_time is None:
            return
        if as_utc(obj.end_time) <= as_utc(obj.start_time):
            raise ValidationError(
                message="endTime must be after startTime",
                field="endTime",
            )
