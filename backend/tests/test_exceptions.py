"""
Campus Scheduler — Error Taxonomy Tests
=========================================

What we test:
    ✅ ErrorKind → HTTP status mapping
    ✅ translate_db_error(): unique violation → 409, other integrity → 400,
       unknown → 500 with a generic message, SchedulerError passes through
"""

from sqlalchemy.exc import DataError, IntegrityError, OperationalError

from campus_scheduler.exceptions import (
    ConflictError,
    DatabaseError,
    ErrorKind,
    NotFoundError,
    ServiceBusyError,
    ValidationError,
    translate_db_error,
)


class _PgError(Exception):
    def __init__(self, message, sqlstate):
        super().__init__(message)
        self.sqlstate = sqlstate


class TestErrorKind:

    def test_status_codes(self):
        assert ErrorKind.VALIDATION.status_code == 400
        assert ErrorKind.NOT_FOUND.status_code == 404
        assert ErrorKind.CONFLICT.status_code == 409
        assert ErrorKind.INTERNAL.status_code == 500
        assert ErrorKind.UNAVAILABLE.status_code == 503

    def test_exception_kinds(self):
        assert NotFoundError("appointment", 1).kind is ErrorKind.NOT_FOUND
        assert ServiceBusyError().kind is ErrorKind.UNAVAILABLE
        assert DatabaseError().kind is ErrorKind.INTERNAL


class TestTranslateDbError:

    def test_postgres_unique_violation(self):
        orig = _PgError("duplicate key value violates unique constraint", "23505")
        error = translate_db_error(IntegrityError("INSERT", {}, orig), "course")

        assert isinstance(error, ConflictError)
        assert error.kind.status_code == 409

    def test_sqlite_unique_violation(self):
        orig = Exception("UNIQUE constraint failed: courses.code")
        error = translate_db_error(IntegrityError("INSERT", {}, orig), "course")

        assert isinstance(error, ConflictError)

    def test_foreign_key_violation_is_validation(self):
        orig = _PgError("violates foreign key constraint", "23503")
        error = translate_db_error(IntegrityError("INSERT", {}, orig), "appointment")

        assert isinstance(error, ValidationError)
        assert error.kind.status_code == 400

    def test_data_error_is_validation(self):
        error = translate_db_error(DataError("INSERT", {}, Exception("bad value")), "schedule")
        assert isinstance(error, ValidationError)

    def test_unknown_error_is_generic_database_error(self):
        error = translate_db_error(
            OperationalError("SELECT", {}, Exception("connection refused")), "schedule"
        )

        assert isinstance(error, DatabaseError)
        assert "connection refused" not in error.message

    def test_scheduler_error_passes_through(self):
        original = NotFoundError("appointment", 9)
        assert translate_db_error(original) is original
