from pydantic import BaseModel
from typing import Optional, List, Dict
from datetime import date, datetime

from alumni_portal.models.user import UserRole
from alumni_portal.schemas.auth import UserResponse
from alumni_portal.schemas.common import PageMeta


# ==================== User Management Schemas ====================

class AdminUserResponse(UserResponse):
    """User row with the profile name, for the admin user table"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    roll_number: Optional[str] = None


class AdminUsersResponse(PageMeta):
    """Paginated users response for admin"""
    items: List[AdminUserResponse]


class UserRoleUpdate(BaseModel):
    role: UserRole


class UserStats(BaseModel):
    total_users: int
    approved_users: int
    pending_approval: int
    active_users: int
    inactive_users: int
    verified_emails: int
    by_role: Dict[str, int]
    by_provider: Dict[str, int]
    institute_emails: int
    external_emails: int


# ==================== Institute Record Schemas ====================

class InstituteRecordResponse(BaseModel):
    id: str
    roll_number: str
    full_name: str
    date_of_birth: date
    enrollment_year: Optional[int] = None
    degree: Optional[str] = None
    branch: Optional[str] = None
    institute_email: Optional[str] = None
    contact_number: Optional[str] = None
    is_active: bool
    linked_user_email: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InstituteRecordsResponse(PageMeta):
    items: List[InstituteRecordResponse]


class ImportSummaryResponse(BaseModel):
    total: int
    imported: int
    skipped: int
    failed: int
    errors: List[str]


class InstituteRecordStats(BaseModel):
    total_records: int
    active_records: int
    linked_records: int
    unlinked_records: int
    by_branch: Dict[str, int]
    by_enrollment_year: Dict[str, int]
