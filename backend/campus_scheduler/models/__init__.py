"""
ORM models for the scheduling entities.

Importing this package registers every table on `Base.metadata`
(Alembic's env.py and the test suite rely on that).
"""

from campus_scheduler.models.appointment import Appointment
from campus_scheduler.models.course import Course
from campus_scheduler.models.course_membership import CourseMembership
from campus_scheduler.models.schedule import Schedule

__all__ = ["Appointment", "Course", "CourseMembership", "Schedule"]
