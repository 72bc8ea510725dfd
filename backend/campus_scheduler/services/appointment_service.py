"""
Campus Scheduler — Appointment Service
========================================

What:  Appointment CRUD plus the two long-running update paths.
Who:   Called by the /appointments route handlers; the background halves run
       inside TaskQueue workers.

Bulk update (PUT /appointments/bulk):
    ┌──────────┐   ┌──────────────┐   ┌───────────────────────────────┐
    │ validate │──▶│ submit job   │──▶│ 202 {message, statusUrl, id}  │
    └──────────┘   └──────┬───────┘   └───────────────────────────────┘
                          ▼  (worker, holds every listed appointment's turn)
          for item in order: load → apply → commit  (one transaction each)
          all applied  → tracker.complete(job, {updated: n})
          item raises  → tracker.fail(job, message)   earlier items stay

Async single update (PUT /appointments/{id}/async):
    ┌──────────┐   ┌────────────────────┐   ┌─────────┐   ┌──────────────┐
    │ lookup   │──▶│ tracker.begin()    │──▶│ submit  │──▶│ 202+Location │
    │ (404 if  │   │ status=processing  │   └────┬────┘   └──────────────┘
    │  absent) │   └────────────────────┘        ▼  (worker, per-appointment turn)
    └──────────┘             sleep(delay) → load → apply → commit
                             ok → tracker.complete(op, appointment)
                             error → tracker.fail(op, message)

Error Handling:
    Background halves never raise into an HTTP response: failures are
    translated (translate_db_error) and recorded on the operation. Only a
    tracker/storage failure escapes, to the task's future and the worker log.
"""

import asyncio
import logging
import uuid
from functools import partial
from typing import List

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from campus_scheduler.exceptions import ServiceBusyError, translate_db_error
from campus_scheduler.models.appointment import Appointment
from campus_scheduler.schemas.appointment import (
    AppointmentBulkItem,
    AppointmentResponse,
    AppointmentUpdate,
)
from campus_scheduler.services.background import BackgroundContext
from campus_scheduler.services.crud import CrudService, TimeWindowMixin

logger = logging.getLogger(__name__)

RESOURCE_TYPE = "appointment"


def _resource_key(appointment_id: int) -> str:
    return f"{RESOURCE_TYPE}:{appointment_id}"


class AppointmentService(TimeWindowMixin, CrudService[Appointment]):
    model = Appointment
    resource = RESOURCE_TYPE
    sortable = ("id", "start_time", "end_time", "status", "user_id", "schedule_id", "created_at")
    default_sort = "start_time"
    time_filtered = True

    # ── Per-student / per-schedule queries ────────────────────────────────

    async def list_by_user(self, db: AsyncSession, user_id: str) -> List[Appointment]:
        return await self.find_all(db, user_id=user_id)

    async def list_by_schedule(self, db: AsyncSession, schedule_id: int) -> List[Appointment]:
        return await self.find_all(db, schedule_id=schedule_id)

    async def delete_by_user(self, db: AsyncSession, user_id: str) -> int:
        """Delete every appointment a student made; returns the number removed."""
        try:
            result = await db.execute(delete(Appointment).where(Appointment.user_id == user_id))
        except Exception as e:
            raise translate_db_error(e, self.resource) from e
        removed = result.rowcount or 0
        logger.info("Deleted %d appointments for user %s", removed, user_id)
        return removed

    # ══════════════════════════════════════════════════════════════════════
    # Bulk update job
    # ══════════════════════════════════════════════════════════════════════

    def accept_bulk_update(
        self,
        items: List[AppointmentBulkItem],
        ctx: BackgroundContext,
    ) -> str:
        """
        Queue a bulk update and return its job id.

        Nothing is written to the tracker until the job reaches a terminal
        state; the status routes report a queued job as processing. The job
        waits behind earlier accepted updates to any appointment it lists,
        and later ones wait for it.

        Raises:
            ServiceBusyError: the task queue is full
        """
        job_id = str(uuid.uuid4())
        ctx.queue.submit(
            job_id,
            partial(self._run_bulk_update, job_id, items, ctx),
            resource_keys=[_resource_key(item.id) for item in items],
        )
        logger.info("Bulk update job %s accepted (%d items)", job_id, len(items))
        return job_id

    async def _run_bulk_update(
        self,
        job_id: str,
        items: List[AppointmentBulkItem],
        ctx: BackgroundContext,
    ) -> None:
        terminal = {"resource_type": RESOURCE_TYPE, "operation": "bulk_update"}
        updated = 0
        try:
            for item in items:
                changes = item.model_dump(exclude_unset=True, exclude={"id"})
                async with ctx.session_factory() as session:
                    await self.update(session, item.id, changes)
                    await session.commit()
                updated += 1
        except Exception as e:
            error = translate_db_error(e, self.resource)
            logger.warning(
                "Bulk job %s stopped at item %d of %d: %s",
                job_id, updated + 1, len(items), error.message,
            )
            await ctx.tracker.fail(job_id, error.message, **terminal)
            return

        await ctx.tracker.complete(job_id, {"updated": updated}, **terminal)

    # ══════════════════════════════════════════════════════════════════════
    # Async single update
    # ══════════════════════════════════════════════════════════════════════

    async def accept_async_update(
        self,
        db: AsyncSession,
        appointment_id: int,
        payload: AppointmentUpdate,
        ctx: BackgroundContext,
    ) -> str:
        """
        Accept an update to run in the background; returns the operation id.

        Raises:
            NotFoundError: no such appointment (nothing is written)
            ServiceBusyError: the task queue is full
        """
        await self.get(db, appointment_id)

        if ctx.queue.full():
            raise ServiceBusyError(
                retry_after=ctx.queue.retry_after,
                context={"resource_id": appointment_id},
            )

        operation_id = str(uuid.uuid4())
        await ctx.tracker.begin(
            operation_id,
            resource_type=RESOURCE_TYPE,
            resource_id=appointment_id,
            operation="update",
            data=payload.model_dump(mode="json", by_alias=True, exclude_unset=True),
        )

        try:
            ctx.queue.submit(
                operation_id,
                partial(self._run_async_update, operation_id, appointment_id, payload, ctx),
                resource_keys=[_resource_key(appointment_id)],
            )
        except ServiceBusyError as e:
            # Queue filled up while the processing record was being written
            await ctx.tracker.fail(operation_id, e.message)
            raise

        return operation_id

    async def _run_async_update(
        self,
        operation_id: str,
        appointment_id: int,
        payload: AppointmentUpdate,
        ctx: BackgroundContext,
    ) -> None:
        terminal = {"resource_type": RESOURCE_TYPE, "resource_id": appointment_id}
        try:
            if ctx.update_delay_seconds > 0:
                await asyncio.sleep(ctx.update_delay_seconds)

            async with ctx.session_factory() as session:
                appointment = await self.update(
                    session, appointment_id, payload.model_dump(exclude_unset=True)
                )
                await session.commit()
                result = AppointmentResponse.model_validate(appointment).model_dump(
                    mode="json", by_alias=True
                )
        except Exception as e:
            error = translate_db_error(e, self.resource)
            await ctx.tracker.fail(operation_id, error.message, **terminal)
            return

        await ctx.tracker.complete(operation_id, result, **terminal)


# ── Singleton Instance ────────────────────────────────────────────────────
appointment_service = AppointmentService()
