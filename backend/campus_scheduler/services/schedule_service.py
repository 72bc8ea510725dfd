"""Schedule CRUD. Schedules carry a time window and may belong to a course."""

from campus_scheduler.models.schedule import Schedule
from campus_scheduler.services.crud import CrudService, TimeWindowMixin


class ScheduleService(TimeWindowMixin, CrudService[Schedule]):
    model = Schedule
    resource = "schedule"
    sortable = ("id", "start_time", "end_time", "title", "owner_id", "created_at")
    default_sort = "start_time"
    time_filtered = True


schedule_service = ScheduleService()
