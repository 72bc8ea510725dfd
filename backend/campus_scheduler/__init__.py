"""
Campus Scheduler — Application Package
========================================

REST API for campus scheduling: appointments, schedules, courses and course
memberships, with background bulk and single-appointment updates tracked
through a pollable operation store.

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Services (CRUD, task queue,        │  ← Business rules, background work
    │            operation tracker)       │
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │  Database / Operation store         │  ← Async SQLAlchemy, Redis or memory
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
