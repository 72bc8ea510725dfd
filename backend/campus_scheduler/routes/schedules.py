"""
Campus Scheduler — Schedule Route Handlers
============================================

Route Inventory:
    GET    /schedules        paginated list (sortBy, order, startDate, endDate)
    POST   /schedules        create → 201 + Location
    GET    /schedules/{id}   detail with `_links`
    PUT    /schedules/{id}   partial update
    DELETE /schedules/{id}   delete (cascades to its appointments)
"""

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus_scheduler.database import get_db_session
from campus_scheduler.dependencies import get_list_query
from campus_scheduler.exceptions import NotFoundError
from campus_scheduler.routes.listing import collection_url, page_response
from campus_scheduler.schemas.common import ErrorResponse, MessageResponse, Page
from campus_scheduler.schemas.schedule import (
    ScheduleCreate,
    ScheduleDetail,
    ScheduleResponse,
    ScheduleUpdate,
)
from campus_scheduler.services.crud import ListQuery
from campus_scheduler.services.hypermedia import collection_link, schedule_links
from campus_scheduler.services.schedule_service import schedule_service

router = APIRouter(prefix="/schedules", tags=["Schedules"])

COLLECTION = "schedules"

_not_found = {404: {"description": "Schedule not found", "model": ErrorResponse}}


@router.get("", response_model=Page[ScheduleResponse], summary="List schedules with pagination")
async def list_schedules(
    request: Request,
    response: Response,
    query: ListQuery = Depends(get_list_query),
    db: AsyncSession = Depends(get_db_session),
) -> Page[ScheduleResponse]:
    rows, total = await schedule_service.list(db, query)
    return page_response(
        request, response,
        collection=COLLECTION, rows=rows, total=total, query=query,
        item_schema=ScheduleResponse,
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ScheduleResponse,
    responses={400: {"description": "Invalid input", "model": ErrorResponse}},
    summary="Create a schedule",
)
async def create_schedule(
    payload: ScheduleCreate,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> ScheduleResponse:
    schedule = await schedule_service.create(db, payload.model_dump())
    response.headers["Location"] = f"{collection_url(request, COLLECTION)}/{schedule.id}"
    return ScheduleResponse.model_validate(schedule)


@router.get(
    "/{schedule_id}",
    response_model=ScheduleDetail,
    responses=_not_found,
    summary="Get a schedule with hypermedia links",
)
async def get_schedule(
    schedule_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> ScheduleDetail:
    base_url = str(request.base_url)
    schedule = await schedule_service.find(db, schedule_id)
    if schedule is None:
        raise NotFoundError(
            resource="schedule",
            resource_id=schedule_id,
            links=collection_link(base_url, COLLECTION),
        )
    detail = ScheduleDetail.model_validate(schedule)
    detail.links = schedule_links(base_url, schedule)
    return detail


@router.put(
    "/{schedule_id}",
    response_model=ScheduleResponse,
    responses=_not_found,
    summary="Update a schedule",
)
async def update_schedule(
    schedule_id: int,
    payload: ScheduleUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> ScheduleResponse:
    schedule = await schedule_service.update(
        db, schedule_id, payload.model_dump(exclude_unset=True)
    )
    return ScheduleResponse.model_validate(schedule)


@router.delete(
    "/{schedule_id}",
    response_model=MessageResponse,
    responses=_not_found,
    summary="Delete a schedule",
)
async def delete_schedule(
    schedule_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await schedule_service.delete(db, schedule_id)
    return MessageResponse(message="Schedule deleted")
