"""
Campus Scheduler — Health Check Route
=======================================

What:  GET /health for container health checks and load balancer probes.
How:   Runs SELECT 1 against the database and pings the operation store.

Status levels:
    healthy    database and operation store reachable         (200)
    degraded   database up, operation store down              (200)
    unhealthy  database down                                  (503)

A degraded service still serves CRUD; only the 202 update endpoints and
status polling depend on the operation store.
"""

import logging
import time

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from campus_scheduler import __version__
from campus_scheduler.dependencies import get_operation_store, get_task_queue
from campus_scheduler.schemas.common import HealthResponse
from campus_scheduler.services.operation_store import OperationStore
from campus_scheduler.services.task_queue import TaskQueue

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(
    request: Request,
    store: OperationStore = Depends(get_operation_store),
    queue: TaskQueue = Depends(get_task_queue),
):
    db_status = "connected"
    store_status = "available"
    overall = "healthy"

    try:
        async with request.app.state.session_factory() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    if not await store.ping():
        store_status = "unavailable"
        if overall == "healthy":
            overall = "degraded"

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        operation_store=store_status,
        pending_operations=queue.pending_count,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if overall == "unhealthy":
        return JSONResponse(status_code=503, content=body.model_dump(by_alias=True))
    return body
