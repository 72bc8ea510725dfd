"""Request and response models for /courses and /course-memberships."""

from datetime import datetime
from typing import Dict, Literal, Optional

from pydantic import Field

from campus_scheduler.schemas.common import ApiModel, Link

MembershipRole = Literal["student", "instructor", "assistant"]


# ── Courses ───────────────────────────────────────────────────────────────

class CourseCreate(ApiModel):
    code: str = Field(min_length=1, max_length=32)
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    term: Optional[str] = Field(default=None, max_length=32)


class CourseUpdate(ApiModel):
    code: Optional[str] = Field(default=None, min_length=1, max_length=32)
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    term: Optional[str] = Field(default=None, max_length=32)


class CourseResponse(ApiModel):
    id: int
    code: str
    name: str
    description: Optional[str] = None
    term: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CourseDetail(CourseResponse):
    links: Dict[str, Link] = Field(default_factory=dict, alias="_links")


# ── Course Memberships ────────────────────────────────────────────────────

class CourseMembershipCreate(ApiModel):
    course_id: int = Field(ge=1)
    user_id: str = Field(min_length=1, max_length=64)
    role: MembershipRole = "student"


class CourseMembershipUpdate(ApiModel):
    role: Optional[MembershipRole] = None


class CourseMembershipResponse(ApiModel):
    id: int
    course_id: int
    user_id: str
    role: str
    created_at: datetime
    updated_at: datetime


class CourseMembershipDetail(CourseMembershipResponse):
    links: Dict[str, Link] = Field(default_factory=dict, alias="_links")
