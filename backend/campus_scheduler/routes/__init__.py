"""
Campus Scheduler — API Routes Package
=======================================

Route Inventory:
    - appointments.py:        /appointments, bulk and async updates, job status
    - schedules.py:           /schedules
    - courses.py:             /courses
    - course_memberships.py:  /course-memberships
    - operations.py:          GET /operations/{id}
    - health.py:              GET /health

listing.py holds the pagination envelope shared by every list route.

Routes stay thin: read the request, call a service, set status code and
headers. Business rules live in campus_scheduler.services.
"""
