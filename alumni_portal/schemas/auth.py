from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional
from datetime import date, datetime

from alumni_portal.models.user import UserRole, AuthProvider, RegistrationPath


class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)

    # Personal-email registrations verify against institute records
    roll_number: Optional[str] = Field(None, max_length=50)
    date_of_birth: Optional[date] = None

    @field_validator('first_name', 'last_name', 'roll_number')
    @classmethod
    def strip_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return value.strip() or None

    @model_validator(mode='after')
    def validate_record_fields(self):
        """Roll number and date of birth go together"""
        if self.roll_number and not self.date_of_birth:
            raise ValueError("Date of birth is required when a roll number is provided")
        if not self.first_name or not self.last_name:
            raise ValueError("First and last name are required")
        return self


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    id: str
    email: str
    role: UserRole
    provider: AuthProvider = AuthProvider.LOCAL
    is_approved: bool
    is_active: bool
    email_verified: bool
    onboarding_completed: bool
    registration_path: Optional[RegistrationPath] = None
    institute_record_id: Optional[str] = None
    created_at: datetime
    last_login: Optional[datetime] = None

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserResponse
    message: Optional[str] = None


class VerifyEmailRequest(BaseModel):
    token: str


class EmailRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str = Field(..., min_length=8)
