"""
Campus Scheduler — Course Membership Route Handlers
=====================================================

Route Inventory:
    GET    /course-memberships        paginated list, optional courseId / userId
    POST   /course-memberships        enroll → 201 + Location (409 if already enrolled)
    GET    /course-memberships/{id}   detail with `_links`
    PUT    /course-memberships/{id}   change role
    DELETE /course-memberships/{id}   unenroll
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus_scheduler.database import get_db_session
from campus_scheduler.dependencies import get_list_query
from campus_scheduler.exceptions import NotFoundError
from campus_scheduler.routes.listing import collection_url, page_response
from campus_scheduler.schemas.common import ErrorResponse, MessageResponse, Page
from campus_scheduler.schemas.course import (
    CourseMembershipCreate,
    CourseMembershipDetail,
    CourseMembershipResponse,
    CourseMembershipUpdate,
)
from campus_scheduler.services.course_service import course_membership_service
from campus_scheduler.services.crud import ListQuery
from campus_scheduler.services.hypermedia import collection_link, course_membership_links

router = APIRouter(prefix="/course-memberships", tags=["Course Memberships"])

COLLECTION = "course-memberships"

_not_found = {404: {"description": "Membership not found", "model": ErrorResponse}}


@router.get(
    "",
    response_model=Page[CourseMembershipResponse],
    summary="List course memberships with pagination",
)
async def list_course_memberships(
    request: Request,
    response: Response,
    course_id: Optional[int] = Query(default=None, alias="courseId", ge=1),
    user_id: Optional[str] = Query(default=None, alias="userId"),
    query: ListQuery = Depends(get_list_query),
    db: AsyncSession = Depends(get_db_session),
) -> Page[CourseMembershipResponse]:
    rows, total = await course_membership_service.list(
        db, query, {"course_id": course_id, "user_id": user_id}
    )
    return page_response(
        request, response,
        collection=COLLECTION, rows=rows, total=total, query=query,
        item_schema=CourseMembershipResponse,
        filters={"courseId": course_id, "userId": user_id},
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=CourseMembershipResponse,
    responses={409: {"description": "User already enrolled", "model": ErrorResponse}},
    summary="Enroll a user in a course",
)
async def create_course_membership(
    payload: CourseMembershipCreate,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> CourseMembershipResponse:
    membership = await course_membership_service.create(db, payload.model_dump())
    response.headers["Location"] = f"{collection_url(request, COLLECTION)}/{membership.id}"
    return CourseMembershipResponse.model_validate(membership)


@router.get(
    "/{membership_id}",
    response_model=CourseMembershipDetail,
    responses=_not_found,
    summary="Get a course membership with hypermedia links",
)
async def get_course_membership(
    membership_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> CourseMembershipDetail:
    base_url = str(request.base_url)
    membership = await course_membership_service.find(db, membership_id)
    if membership is None:
        raise NotFoundError(
            resource="course membership",
            resource_id=membership_id,
            links=collection_link(base_url, COLLECTION),
        )
    detail = CourseMembershipDetail.model_validate(membership)
    detail.links = course_membership_links(base_url, membership)
    return detail


@router.put(
    "/{membership_id}",
    response_model=CourseMembershipResponse,
    responses=_not_found,
    summary="Change a member's role",
)
async def update_course_membership(
    membership_id: int,
    payload: CourseMembershipUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> CourseMembershipResponse:
    membership = await course_membership_service.update(
        db, membership_id, payload.model_dump(exclude_unset=True)
    )
    return CourseMembershipResponse.model_validate(membership)


@router.delete(
    "/{membership_id}",
    response_model=MessageResponse,
    responses=_not_found,
    summary="Remove a user from a course",
)
async def delete_course_membership(
    membership_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await course_membership_service.delete(db, membership_id)
    return MessageResponse(message="Course membership deleted")
