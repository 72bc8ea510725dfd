# Services package init
"""
Campus Scheduler — Services Layer
===================================

What:  Business logic between routes (HTTP) and the database.

Service Inventory:
    - CrudService:             paginated list / get / create / update / delete
    - AppointmentService:      CRUD + bulk update job + async single update
    - ScheduleService, CourseService, CourseMembershipService: CRUD
    - OperationStore:          key-value contract (in-memory, Redis)
    - OperationTracker:        processing → completed | failed state machine
    - TaskQueue:               bounded background queue with worker loops
    - hypermedia:              pagination math and `_links` blocks
"""
