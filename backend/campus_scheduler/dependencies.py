"""
FastAPI dependencies that hand application-scoped collaborators to routes.

Everything here reads `request.app.state`, which create_app() populates;
nothing is imported as a module-level singleton, so a test can build an app
around its own store, queue and database.
"""

from fastapi import Depends, Query, Request

from campus_scheduler.config import Settings
from campus_scheduler.services.background import BackgroundContext
from campus_scheduler.services.crud import ListQuery
from campus_scheduler.services.operation_store import OperationStore
from campus_scheduler.services.operation_tracker import OperationTracker
from campus_scheduler.services.task_queue import TaskQueue
from campus_scheduler.schemas.common import UtcDatetime


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_operation_store(request: Request) -> OperationStore:
    return request.app.state.operation_store


def get_operation_tracker(request: Request) -> OperationTracker:
    return request.app.state.operation_tracker


def get_task_queue(request: Request) -> TaskQueue:
    return request.app.state.task_queue


def get_background_context(request: Request) -> BackgroundContext:
    state = request.app.state
    return BackgroundContext(
        tracker=state.operation_tracker,
        queue=state.task_queue,
        session_factory=state.session_factory,
        update_delay_seconds=state.settings.async_update_delay_seconds,
    )


def get_list_query(
    page: int = Query(default=1, ge=1, description="Page number (1-based)"),
    limit: int | None = Query(
        default=None, ge=1, description="Items per page (defaults to DEFAULT_PAGE_SIZE)"
    ),
    sort_by: str | None = Query(default=None, alias="sortBy", description="Field to sort on"),
    order: str = Query(default="DESC", description="ASC or DESC"),
    start_date: UtcDatetime | None = Query(
        default=None, alias="startDate", description="Only rows starting at or after this time"
    ),
    end_date: UtcDatetime | None = Query(
        default=None, alias="endDate", description="Only rows ending at or before this time"
    ),
    app_settings: Settings = Depends(get_settings),
) -> ListQuery:
    """Shared listing parameters; the page size is capped at MAX_PAGE_SIZE."""
    size = app_settings.default_page_size if limit is None else limit
    return ListQuery(
        page=page,
        limit=min(size, app_settings.max_page_size),
        sort_by=sort_by,
        order=order,
        start_date=start_date,
        end_date=end_date,
    )
