"""
Course and course-membership CRUD.

Both lean on unique constraints (course code; one membership per user and
course) that surface as ConflictError (409) through translate_db_error().
"""

from campus_scheduler.models.course import Course
from campus_scheduler.models.course_membership import CourseMembership
from campus_scheduler.services.crud import CrudService


class CourseService(CrudService[Course]):
    model = Course
    resource = "course"
    sortable = ("id", "code", "name", "term", "created_at")
    default_sort = "code"


class CourseMembershipService(CrudService[CourseMembership]):
    model = CourseMembership
    resource = "course membership"
    sortable = ("id", "course_id", "user_id", "role", "created_at")
    default_sort = "created_at"


course_service = CourseService()
course_membership_service = CourseMembershipService()
