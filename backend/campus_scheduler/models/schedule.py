"""
Campus Scheduler — Schedule Model
===================================

What:  ORM model for the `schedules` table — a block of time an owner
       (instructor, advisor) makes available, optionally tied to a course.
Who:   ScheduleService (CRUD); Appointment references it.

Query Patterns:
    - List by time window: WHERE start_time >= :from AND end_time <= :to
      → idx_schedules_start_time
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from campus_scheduler.database import Base
from campus_scheduler.models.mixins import IdTimestampMixin


class Schedule(IdTimestampMixin, Base):
    """An owner's availability window."""

    __tablename__ = "schedules"

    # Nullable: office hours are not always tied to a course
    course_id: Mapped[int | None] = mapped_column(
        ForeignKey("courses.id", ondelete="SET NULL"),
        nullable=True,
        default=None,
    )

    owner_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="External user id of the schedule owner",
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    location: Mapped[str | None] = mapped_column(String(255), nullable=True, default=None)

    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_schedules_time_window"),
        Index("idx_schedules_start_time", "start_time"),
    )

    def __repr__(self) -> str:
        return f"<Schedule(id={self.id}, title='{self.title}')>"
