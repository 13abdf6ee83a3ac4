# Re-export all models for convenient imports
from alumni_portal.models.institute_record import InstituteRecord
from alumni_portal.models.user import User, UserRole, AuthProvider, RegistrationPath
from alumni_portal.models.alumni_profile import (
    AlumniProfile,
    EmploymentStatus,
    HigherStudyStatus,
    COMPANY_REQUIRED_STATUSES,
    has_skill,
)
from alumni_portal.models.news import News
from alumni_portal.models.event import (
    Event,
    EventRegistration,
    EventStatus,
    EventMode,
    RegistrationStatus,
)

__all__ = [
    # Institute records
    "InstituteRecord",
    # User
    "User",
    "UserRole",
    "AuthProvider",
    "RegistrationPath",
    # Profile
    "AlumniProfile",
    "EmploymentStatus",
    "HigherStudyStatus",
    "COMPANY_REQUIRED_STATUSES",
    "has_skill",
    # Content
    "News",
    "Event",
    "EventRegistration",
    "EventStatus",
    "EventMode",
    "RegistrationStatus",
]
