"""
Campus Scheduler — Course Membership Model
============================================

What:  ORM model for the `course_memberships` table linking users to courses.
Who:   CourseMembershipService.

A user holds at most one membership per course; a second enrolment for the
same pair is a ConflictError (409).
"""

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from campus_scheduler.database import Base
from campus_scheduler.models.mixins import IdTimestampMixin

MEMBERSHIP_ROLES = ("student", "instructor", "assistant")


class CourseMembership(IdTimestampMixin, Base):
    """A user's role in a course."""

    __tablename__ = "course_memberships"

    course_id: Mapped[int] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
    )

    user_id: Mapped[str] = mapped_column(String(64), nullable=False)

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="student",
        server_default="student",
    )

    __table_args__ = (
        UniqueConstraint("course_id", "user_id", name="uq_course_memberships_course_user"),
        Index("idx_course_memberships_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<CourseMembership(id={self.id}, course_id={self.course_id}, "
            f"user_id='{self.user_id}', role='{self.role}')>"
        )
