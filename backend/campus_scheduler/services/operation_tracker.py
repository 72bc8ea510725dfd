"""
Campus Scheduler — Operation Tracker
======================================

What:  State machine for tracked background work, layered on an OperationStore.
How:   begin() writes `processing`; complete()/fail() write the terminal state.
       A terminal record is never overwritten: a second terminal write is
       logged and ignored.
Who:   AppointmentService (async update and bulk job), status routes.

State machine:
    absent ──begin()──▶ processing ──complete()──▶ completed
       │                     └───────fail()─────▶ failed
       └──complete()/fail()──▶ completed | failed     (bulk jobs)
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from campus_scheduler.schemas.operation import OperationRecord, OperationStatus
from campus_scheduler.services.operation_store import OperationStore

logger = logging.getLogger(__name__)


class OperationTracker:
    """Writes operation records through their lifecycle."""

    def __init__(self, store: OperationStore):
        self.store = store

    async def get(self, operation_id: str) -> Optional[OperationRecord]:
        return await self.store.get(operation_id)

    async def begin(
        self,
        operation_id: str,
        *,
        resource_type: str,
        resource_id: Optional[Any] = None,
        operation: str = "update",
        data: Optional[Dict[str, Any]] = None,
    ) -> OperationRecord:
        """Write the initial `processing` record for an accepted operation."""
        record = OperationRecord(
            operation_id=operation_id,
            status=OperationStatus.PROCESSING,
            resource_type=resource_type,
            resource_id=None if resource_id is None else str(resource_id),
            operation=operation,
            data=data,
        )
        await self.store.set(operation_id, record)
        logger.info(
            "Operation %s accepted: %s %s/%s",
            operation_id, operation, resource_type, record.resource_id,
        )
        return record

    async def complete(
        self,
        operation_id: str,
        result: Optional[Dict[str, Any]] = None,
        **fields: Any,
    ) -> Optional[OperationRecord]:
        return await self._finish(
            operation_id, OperationStatus.COMPLETED, result=result, **fields
        )

    async def fail(
        self,
        operation_id: str,
        error: str,
        **fields: Any,
    ) -> Optional[OperationRecord]:
        return await self._finish(operation_id, OperationStatus.FAILED, error=error, **fields)

    async def _finish(
        self,
        operation_id: str,
        status: OperationStatus,
        *,
        result: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[Any] = None,
        operation: Optional[str] = None,
    ) -> Optional[OperationRecord]:
        """
        Move a record to a terminal state.

        Returns the written record, or None when the record was already
        terminal (nothing is written in that case).
        """
        current = await self.store.get(operation_id)
        if current is not None and current.is_terminal:
            logger.warning(
                "Operation %s already %s; ignoring transition to %s",
                operation_id, current.status.value, status.value,
            )
            return None

        now = datetime.now(timezone.utc)
        if current is None:
            current = OperationRecord(
                operation_id=operation_id,
                status=status,
                created_at=now,
            )

        updates: Dict[str, Any] = {"status": status, "updated_at": now, "data": None}
        if resource_type is not None:
            updates["resource_type"] = resource_type
        if resource_id is not None:
            updates["resource_id"] = str(resource_id)
        if operation is not None:
            updates["operation"] = operation
        if status is OperationStatus.COMPLETED:
            updates.update(result=result, error=None)
        else:
            updates.update(result=None, error=error)

        record = current.model_copy(update=updates)
        await self.store.set(operation_id, record)

        if status is OperationStatus.COMPLETED:
            logger.info("Operation %s completed", operation_id)
        else:
            logger.warning("Operation %s failed: %s", operation_id, error)
        return record
