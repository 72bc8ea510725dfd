"""
Campus Scheduler — Course Model
=================================

What:  ORM model for the `courses` table.
Who:   CourseService (CRUD), Schedule and CourseMembership (foreign keys).

Table Design:
    - code is unique: duplicate codes surface as ConflictError (409)
    - term is free text ("2026-fall"); no calendar table behind it
"""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from campus_scheduler.database import Base
from campus_scheduler.models.mixins import IdTimestampMixin


class Course(IdTimestampMixin, Base):
    """A course offered in a given term."""

    __tablename__ = "courses"

    code: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        unique=True,
        comment="Catalogue code, e.g. CS101",
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    term: Mapped[str | None] = mapped_column(String(32), nullable=True, default=None)

    def __repr__(self) -> str:
        return f"<Course(id={self.id}, code='{self.code}')>"
