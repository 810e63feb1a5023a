"""Error Hierarchy — verifies codes, categories and the error envelope."""

from medreminder.core.errors import (
    DatabaseError, ErrorCategory, ErrorContext, ErrorSeverity, MedReminderError,
    ResourceNotFoundError, ScheduleValidationError,
)


def test_validation_error_fields():
    err = ScheduleValidationError("minutes must be >= 1", field="minutes")
    assert isinstance(err, MedReminderError)
    assert err.code == "VALIDATION_ERROR"
    assert err.category is ErrorCategory.VALIDATION
    assert err.field == "minutes"


def test_not_found_message():
    err = ResourceNotFoundError("Schedule", "12")
    assert str(err) == "Schedule '12' not found"
    assert err.category is ErrorCategory.RESOURCE_NOT_FOUND


def test_database_error_is_critical_and_records_operation():
    err = DatabaseError("disk I/O error", operation="commit")
    assert err.message == "Database commit failed: disk I/O error"
    assert err.severity is ErrorSeverity.CRITICAL
    assert err.context.operation == "commit"


def test_database_error_keeps_existing_operation():
    err = DatabaseError("boom", operation="commit", context=ErrorContext(operation="update"))
    assert err.context.operation == "update"


def test_to_dict_envelope():
    ctx = ErrorContext(schedule_id=4, medication_id=9, operation="snooze")
    body = ScheduleValidationError("bad", field="minutes", context=ctx).to_dict()["error"]
    assert body["code"] == "VALIDATION_ERROR"
    assert body["category"] == "validation"
    assert body["severity"] == "error"
    assert body["context"] == {"schedule_id": 4, "medication_id": 9, "operation": "snooze"}
    assert "timestamp" in body
