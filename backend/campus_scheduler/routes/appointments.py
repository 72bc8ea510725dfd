"""
Campus Scheduler — Appointment Route Handlers
===============================================

What:  /appointments CRUD, per-student and per-schedule views, and the two
       long-running update endpoints.
How:   Extract parameters, delegate to AppointmentService, shape the response
       (status code, Location, `_links`).

Route Inventory:
    GET    /appointments                         paginated list
    POST   /appointments                         create → 201 + Location
    PUT    /appointments/bulk                    bulk update job → 202
    GET    /appointments/jobs/{job_id}           bulk job status
    GET    /appointments/user/{user_id}          a student's appointments
    DELETE /appointments/user/{user_id}          cancel all of a student's appointments
    GET    /appointments/schedule/{schedule_id}  appointments in a schedule
    GET    /appointments/{id}                    detail with `_links`
    PUT    /appointments/{id}                    synchronous partial update
    PUT    /appointments/{id}/async              background update → 202 + Location
    DELETE /appointments/{id}                    delete

Static segments (bulk, jobs, user, schedule) are declared before /{id}.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus_scheduler.database import get_db_session
from campus_scheduler.dependencies import (
    get_background_context,
    get_list_query,
    get_operation_tracker,
    get_task_queue,
)
from campus_scheduler.exceptions import NotFoundError
from campus_scheduler.routes.listing import collection_url, page_response
from campus_scheduler.routes.operations import read_operation
from campus_scheduler.schemas.appointment import (
    AppointmentBulkUpdateRequest,
    AppointmentCreate,
    AppointmentDetail,
    AppointmentResponse,
    AppointmentUpdate,
)
from campus_scheduler.schemas.common import ErrorResponse, MessageResponse, Page
from campus_scheduler.schemas.operation import (
    BulkJobAccepted,
    OperationAccepted,
    OperationRecord,
)
from campus_scheduler.services.appointment_service import appointment_service
from campus_scheduler.services.background import BackgroundContext
from campus_scheduler.services.crud import ListQuery
from campus_scheduler.services.hypermedia import appointment_links, collection_link
from campus_scheduler.services.operation_tracker import OperationTracker
from campus_scheduler.services.task_queue import TaskQueue

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])

COLLECTION = "appointments"

_errors = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    404: {"description": "Appointment not found", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=Page[AppointmentResponse],
    responses={400: _errors[400], 500: _errors[500]},
    summary="List appointments with pagination",
    description=(
        "Offset pagination (page, limit), sorting (sortBy, order) and an optional "
        "time window (startDate, endDate). Navigation links are returned in `_links` "
        "and in the Link header."
    ),
)
async def list_appointments(
    request: Request,
    response: Response,
    query: ListQuery = Depends(get_list_query),
    db: AsyncSession = Depends(get_db_session),
) -> Page[AppointmentResponse]:
    rows, total = await appointment_service.list(db, query)
    return page_response(
        request, response,
        collection=COLLECTION, rows=rows, total=total, query=query,
        item_schema=AppointmentResponse,
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=AppointmentResponse,
    responses={400: _errors[400], 409: {"description": "Conflict", "model": ErrorResponse}},
    summary="Create an appointment",
)
async def create_appointment(
    payload: AppointmentCreate,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> AppointmentResponse:
    appointment = await appointment_service.create(db, payload.model_dump())
    response.headers["Location"] = f"{collection_url(request, COLLECTION)}/{appointment.id}"
    return AppointmentResponse.model_validate(appointment)


# ══════════════════════════════════════════════════════════════════════════
# Bulk update job
# ══════════════════════════════════════════════════════════════════════════


@router.put(
    "/bulk",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=BulkJobAccepted,
    responses={
        400: _errors[400],
        503: {"description": "Background queue full", "model": ErrorResponse},
    },
    summary="Update many appointments in the background",
    description=(
        "Accepts the job and returns immediately. Items are applied in order, each in "
        "its own transaction; the first failing item fails the whole job and earlier "
        "items stay applied. Poll statusUrl for the outcome."
    ),
)
async def bulk_update_appointments(
    payload: AppointmentBulkUpdateRequest,
    request: Request,
    response: Response,
    ctx: BackgroundContext = Depends(get_background_context),
) -> BulkJobAccepted:
    job_id = appointment_service.accept_bulk_update(payload.appointments, ctx)
    status_url = str(request.url_for("get_appointment_job", job_id=job_id))
    response.headers["Location"] = status_url
    return BulkJobAccepted(status_url=status_url, job_id=job_id)


@router.get(
    "/jobs/{job_id}",
    response_model=OperationRecord,
    response_model_exclude_none=True,
    responses={404: {"description": "Unknown or expired job", "model": ErrorResponse}},
    summary="Poll a bulk update job",
)
async def get_appointment_job(
    job_id: str,
    tracker: OperationTracker = Depends(get_operation_tracker),
    queue: TaskQueue = Depends(get_task_queue),
) -> OperationRecord:
    return await read_operation(job_id, tracker, queue)


# ══════════════════════════════════════════════════════════════════════════
# Per-student / per-schedule views
# ══════════════════════════════════════════════════════════════════════════


@router.get(
    "/user/{user_id}",
    response_model=List[AppointmentResponse],
    summary="All appointments made by a student",
)
async def list_appointments_by_user(
    user_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> List[AppointmentResponse]:
    rows = await appointment_service.list_by_user(db, user_id)
    return [AppointmentResponse.model_validate(row) for row in rows]


@router.delete(
    "/user/{user_id}",
    response_model=MessageResponse,
    summary="Cancel every appointment a student made",
    description="Used when a student account is deleted, transferred or graduated.",
)
async def delete_appointments_by_user(
    user_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    removed = await appointment_service.delete_by_user(db, user_id)
    return MessageResponse(
        message=f"{removed} appointments made by student {user_id} canceled."
    )


@router.get(
    "/schedule/{schedule_id}",
    response_model=List[AppointmentResponse],
    summary="All appointments booked in a schedule",
)
async def list_appointments_by_schedule(
    schedule_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> List[AppointmentResponse]:
    rows = await appointment_service.list_by_schedule(db, schedule_id)
    return [AppointmentResponse.model_validate(row) for row in rows]


# ══════════════════════════════════════════════════════════════════════════
# Single appointment
# ══════════════════════════════════════════════════════════════════════════


@router.get(
    "/{appointment_id}",
    response_model=AppointmentDetail,
    responses={404: _errors[404]},
    summary="Get an appointment with hypermedia links",
)
async def get_appointment(
    appointment_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> AppointmentDetail:
    base_url = str(request.base_url)
    appointment = await appointment_service.find(db, appointment_id)
    if appointment is None:
        raise NotFoundError(
            resource="appointment",
            resource_id=appointment_id,
            links=collection_link(base_url, COLLECTION),
        )
    detail = AppointmentDetail.model_validate(appointment)
    detail.links = appointment_links(base_url, appointment)
    return detail


@router.put(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    responses=_errors,
    summary="Update an appointment",
)
async def update_appointment(
    appointment_id: int,
    payload: AppointmentUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> AppointmentResponse:
    appointment = await appointment_service.update(
        db, appointment_id, payload.model_dump(exclude_unset=True)
    )
    return AppointmentResponse.model_validate(appointment)


@router.put(
    "/{appointment_id}/async",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=OperationAccepted,
    responses={
        404: _errors[404],
        503: {"description": "Background queue full", "model": ErrorResponse},
    },
    summary="Update an appointment in the background",
    description=(
        "Returns 202 with a Location header pointing at the operation status. "
        "Updates to the same appointment are applied one at a time, in the order "
        "they were accepted."
    ),
)
async def update_appointment_async(
    appointment_id: int,
    payload: AppointmentUpdate,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
    ctx: BackgroundContext = Depends(get_background_context),
) -> OperationAccepted:
    operation_id = await appointment_service.accept_async_update(
        db, appointment_id, payload, ctx
    )
    status_url = str(request.url_for("get_operation", operation_id=operation_id))
    response.headers["Location"] = status_url
    return OperationAccepted(status_url=status_url, operation_id=operation_id)


@router.delete(
    "/{appointment_id}",
    response_model=MessageResponse,
    responses={404: _errors[404]},
    summary="Delete an appointment",
)
async def delete_appointment(
    appointment_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await appointment_service.delete(db, appointment_id)
    return MessageResponse(message="Appointment deleted")
