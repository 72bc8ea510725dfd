"""
Campus Scheduler — Course Route Handlers
==========================================

Route Inventory:
    GET    /courses        paginated list
    POST   /courses        create → 201 + Location (409 on a duplicate code)
    GET    /courses/{id}   detail with `_links`
    PUT    /courses/{id}   partial update
    DELETE /courses/{id}   delete (cascades to memberships)
"""

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus_scheduler.database import get_db_session
from campus_scheduler.dependencies import get_list_query
from campus_scheduler.exceptions import NotFoundError
from campus_scheduler.routes.listing import collection_url, page_response
from campus_scheduler.schemas.common import ErrorResponse, MessageResponse, Page
from campus_scheduler.schemas.course import (
    CourseCreate,
    CourseDetail,
    CourseResponse,
    CourseUpdate,
)
from campus_scheduler.services.course_service import course_service
from campus_scheduler.services.crud import ListQuery
from campus_scheduler.services.hypermedia import collection_link, course_links

router = APIRouter(prefix="/courses", tags=["Courses"])

COLLECTION = "courses"

_responses = {
    404: {"description": "Course not found", "model": ErrorResponse},
    409: {"description": "Course code already in use", "model": ErrorResponse},
}


@router.get("", response_model=Page[CourseResponse], summary="List courses with pagination")
async def list_courses(
    request: Request,
    response: Response,
    query: ListQuery = Depends(get_list_query),
    db: AsyncSession = Depends(get_db_session),
) -> Page[CourseResponse]:
    rows, total = await course_service.list(db, query)
    return page_response(
        request, response,
        collection=COLLECTION, rows=rows, total=total, query=query,
        item_schema=CourseResponse,
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=CourseResponse,
    responses={409: _responses[409]},
    summary="Create a course",
)
async def create_course(
    payload: CourseCreate,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> CourseResponse:
    course = await course_service.create(db, payload.model_dump())
    response.headers["Location"] = f"{collection_url(request, COLLECTION)}/{course.id}"
    return CourseResponse.model_validate(course)


@router.get(
    "/{course_id}",
    response_model=CourseDetail,
    responses={404: _responses[404]},
    summary="Get a course with hypermedia links",
)
async def get_course(
    course_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> CourseDetail:
    base_url = str(request.base_url)
    course = await course_service.find(db, course_id)
    if course is None:
        raise NotFoundError(
            resource="course",
            resource_id=course_id,
            links=collection_link(base_url, COLLECTION),
        )
    detail = CourseDetail.model_validate(course)
    detail.links = course_links(base_url, course)
    return detail


@router.put(
    "/{course_id}",
    response_model=CourseResponse,
    responses=_responses,
    summary="Update a course",
)
async def update_course(
    course_id: int,
    payload: CourseUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> CourseResponse:
    course = await course_service.update(db, course_id, payload.model_dump(exclude_unset=True))
    return CourseResponse.model_validate(course)


@router.delete(
    "/{course_id}",
    response_model=MessageResponse,
    responses={404: _responses[404]},
    summary="Delete a course",
)
async def delete_course(
    course_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await course_service.delete(db, course_id)
    return MessageResponse(message="Course deleted")
