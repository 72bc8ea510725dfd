"""
Campus Scheduler — Appointment Model
======================================

What:  ORM model for the `appointments` table — a student's booking inside
       a schedule.
Who:   AppointmentService for CRUD and for the two background update paths
       (bulk job and single async update).

Lifecycle:
    scheduled → completed | cancelled (status is a plain string column;
    transitions are not enforced by the database)

Query Patterns:
    - Per student:  WHERE user_id = :user_id      → idx_appointments_user_id
    - Per schedule: WHERE schedule_id = :id       → idx_appointments_schedule_id
    - Time window:  WHERE start_time >= :from     → idx_appointments_start_time
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from campus_scheduler.database import Base
from campus_scheduler.models.mixins import IdTimestampMixin

APPOINTMENT_STATUSES = ("scheduled", "completed", "cancelled")


class Appointment(IdTimestampMixin, Base):
    """A booked slot within a schedule."""

    __tablename__ = "appointments"

    schedule_id: Mapped[int] = mapped_column(
        ForeignKey("schedules.id", ondelete="CASCADE"),
        nullable=False,
    )

    user_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="External user id of the student who booked",
    )

    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="scheduled",
        server_default="scheduled",
    )

    notes: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_appointments_time_window"),
        Index("idx_appointments_user_id", "user_id"),
        Index("idx_appointments_schedule_id", "schedule_id"),
        Index("idx_appointments_start_time", "start_time"),
    )

    def __repr__(self) -> str:
        return (
            f"<Appointment(id={self.id}, schedule_id={self.schedule_id}, "
            f"user_id='{self.user_id}', status='{self.status}')>"
        )
