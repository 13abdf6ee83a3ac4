"""
Custom Exceptions for the Alumni Portal
=======================================

Use these instead of generic Exception so the API layer can map them to
proper status codes and a consistent JSON body.

Usage:
    from alumni_portal.core.exceptions import RecordVerificationError

    if record.date_of_birth != date_of_birth:
        raise RecordVerificationError("Date of birth does not match our records")
"""

from typing import Optional, Any, Dict

from sqlalchemy.exc import IntegrityError


class AlumniPortalError(Exception):
    """Base exception for all alumni portal errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(AlumniPortalError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class RecordVerificationError(ValidationError):
    """Roll number / date of birth did not match an institute record"""

    def __init__(self, message: str = "Institute record verification failed"):
        super().__init__(message)
        self.code = "RECORD_VERIFICATION_FAILED"


class RecordAlreadyLinkedError(AlumniPortalError):
    """Institute record is already claimed by another account"""

    status_code = 409

    def __init__(self, roll_number: str):
        super().__init__(
            f"Institute record '{roll_number}' is already linked to another account",
            code="RECORD_ALREADY_LINKED",
            details={"roll_number": roll_number}
        )


class EventRegistrationError(ValidationError):
    """Event cannot accept this registration"""

    def __init__(self, message: str):
        super().__init__(message)
        self.code = "EVENT_REGISTRATION_FAILED"


# ============================================
# Upload Errors
# ============================================

class UploadError(AlumniPortalError):
    """File upload rejected"""

    status_code = 400

    def __init__(self, message: str, code: str = "UPLOAD_ERROR"):
        super().__init__(message, code=code)


class FileTooLargeError(UploadError):
    def __init__(self, max_bytes: int):
        super().__init__(
            f"File size too large. Maximum size is {max_bytes // (1024 * 1024)}MB.",
            code="LIMIT_FILE_SIZE"
        )
        self.details = {"max_bytes": max_bytes}


class InvalidFileTypeError(UploadError):
    def __init__(self, message: str, allowed_types: list):
        super().__init__(message, code="INVALID_FILE_TYPE")
        self.details = {"allowed_types": allowed_types}


# ============================================
# Import Errors
# ============================================

class ImportFileError(AlumniPortalError):
    """Spreadsheet could not be read"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message, code="IMPORT_FILE_ERROR")


# ============================================
# Database constraint mapping
# ============================================

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"

CONSTRAINT_MESSAGES = {
    UNIQUE_VIOLATION: "Duplicate value violates unique constraint",
    FOREIGN_KEY_VIOLATION: "Referenced record does not exist",
}


def get_sqlstate(exc: IntegrityError) -> Optional[str]:
    """
    Extract the SQLSTATE from an IntegrityError.

    asyncpg exposes it as ``sqlstate``/``pgcode`` on the wrapped driver error;
    SQLite only gives a message, which is mapped onto the PostgreSQL codes.
    """
    orig = getattr(exc, "orig", None)
    for attr in ("sqlstate", "pgcode"):
        code = getattr(orig, attr, None)
        if code:
            return str(code)
    cause = getattr(orig, "__cause__", None)
    code = getattr(cause, "sqlstate", None)
    if code:
        return str(code)

    message = str(orig or exc).lower()
    if "unique constraint" in message or "duplicate key" in message:
        return UNIQUE_VIOLATION
    if "foreign key constraint" in message:
        return FOREIGN_KEY_VIOLATION
    return None


def integrity_error_message(exc: IntegrityError) -> str:
    return CONSTRAINT_MESSAGES.get(get_sqlstate(exc), "Database constraint violated")


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: AlumniPortalError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "message": error.message,
        "error": error.to_dict()
    }
