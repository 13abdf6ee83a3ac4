"""
Unit Tests for domain exceptions and database error mapping
"""
from types import SimpleNamespace

from sqlalchemy.exc import IntegrityError

from alumni_portal.core.exceptions import (
    AlumniPortalError,
    RecordVerificationError,
    RecordAlreadyLinkedError,
    EventRegistrationError,
    FileTooLargeError,
    InvalidFileTypeError,
    ImportFileError,
    UNIQUE_VIOLATION,
    FOREIGN_KEY_VIOLATION,
    get_sqlstate,
    integrity_error_message,
    error_response,
)


def make_integrity_error(orig) -> IntegrityError:
    return IntegrityError("INSERT INTO users ...", {}, orig)


class TestDomainExceptions:

    def test_base_error_to_dict(self):
        error = AlumniPortalError("Something broke", code="BROKEN", details={"x": 1})

        assert error.status_code == 500
        assert error.to_dict() == {"code": "BROKEN", "message": "Something broke", "details": {"x": 1}}

    def test_record_errors(self):
        assert RecordVerificationError().status_code == 400
        assert RecordVerificationError().code == "RECORD_VERIFICATION_FAILED"

        linked = RecordAlreadyLinkedError("21115001")
        assert linked.status_code == 409
        assert "21115001" in linked.message

    def test_event_registration_error(self):
        error = EventRegistrationError("Event is full")

        assert error.status_code == 400
        assert error.code == "EVENT_REGISTRATION_FAILED"

    def test_upload_errors(self):
        too_large = FileTooLargeError(2 * 1024 * 1024)
        assert too_large.status_code == 400
        assert too_large.message == "File size too large. Maximum size is 2MB."
        assert too_large.code == "LIMIT_FILE_SIZE"

        wrong_type = InvalidFileTypeError("Images only", ["png"])
        assert wrong_type.details == {"allowed_types": ["png"]}

    def test_import_file_error(self):
        assert ImportFileError("bad file").status_code == 400

    def test_error_response(self):
        body = error_response(RecordAlreadyLinkedError("21115001"))

        assert body["success"] is False
        assert body["error"]["code"] == "RECORD_ALREADY_LINKED"
        assert body["message"] == body["error"]["message"]


class TestSqlstateMapping:

    def test_sqlstate_from_driver_error(self):
        error = make_integrity_error(SimpleNamespace(sqlstate="23505"))

        assert get_sqlstate(error) == UNIQUE_VIOLATION
        assert integrity_error_message(error) == "Duplicate value violates unique constraint"

    def test_pgcode_attribute(self):
        error = make_integrity_error(SimpleNamespace(pgcode="23503"))

        assert get_sqlstate(error) == FOREIGN_KEY_VIOLATION
        assert integrity_error_message(error) == "Referenced record does not exist"

    def test_sqlstate_from_wrapped_cause(self):
        cause = SimpleNamespace(sqlstate="23505")
        orig = Exception("wrapped")
        orig.__cause__ = cause

        assert get_sqlstate(make_integrity_error(orig)) == UNIQUE_VIOLATION

    def test_sqlite_messages(self):
        unique = make_integrity_error(Exception("UNIQUE constraint failed: users.email"))
        foreign = make_integrity_error(Exception("FOREIGN KEY constraint failed"))

        assert get_sqlstate(unique) == UNIQUE_VIOLATION
        assert get_sqlstate(foreign) == FOREIGN_KEY_VIOLATION

    def test_unknown_constraint(self):
        error = make_integrity_error(Exception("NOT NULL constraint failed: users.email"))

        assert get_sqlstate(error) is None
        assert integrity_error_message(error) == "Database constraint violated"
