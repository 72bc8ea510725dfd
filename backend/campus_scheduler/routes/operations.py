"""
Campus Scheduler — Operation Status Route
===========================================

What:  GET /operations/{operation_id} — polling endpoint for background work.
Who:   Clients following the statusUrl / Location of a 202 response.

Responses:
    200  the stored record: {status, result} once completed,
         {status, error} once failed, {status: processing} before that
    404  unknown or expired id
"""

import logging

from fastapi import APIRouter, Depends

from campus_scheduler.dependencies import get_operation_tracker, get_task_queue
from campus_scheduler.exceptions import NotFoundError
from campus_scheduler.schemas.common import ErrorResponse
from campus_scheduler.schemas.operation import OperationRecord, OperationStatus
from campus_scheduler.services.operation_tracker import OperationTracker
from campus_scheduler.services.task_queue import TaskQueue

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Operations"])


async def read_operation(
    operation_id: str,
    tracker: OperationTracker,
    queue: TaskQueue,
) -> OperationRecord:
    """
    Current state of an operation or job.

    Bulk jobs write no record until they finish; while the queue still holds
    one, it is reported as processing.
    """
    record = await tracker.get(operation_id)
    if record is not None:
        return record
    if queue.is_pending(operation_id):
        return OperationRecord(operation_id=operation_id, status=OperationStatus.PROCESSING)
    raise NotFoundError(resource="operation", resource_id=operation_id)


@router.get(
    "/operations/{operation_id}",
    response_model=OperationRecord,
    response_model_exclude_none=True,
    responses={404: {"description": "Unknown or expired operation", "model": ErrorResponse}},
    summary="Poll the status of a background operation",
)
async def get_operation(
    operation_id: str,
    tracker: OperationTracker = Depends(get_operation_tracker),
    queue: TaskQueue = Depends(get_task_queue),
) -> OperationRecord:
    return await read_operation(operation_id, tracker, queue)
