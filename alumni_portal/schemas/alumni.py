from pydantic import BaseModel, Field, HttpUrl, field_validator, model_validator
from typing import Optional, List, Dict
from datetime import date, datetime

from alumni_portal.models.alumni_profile import (
    EmploymentStatus,
    HigherStudyStatus,
    COMPANY_REQUIRED_STATUSES,
)
from alumni_portal.schemas.common import PageMeta, split_list

EMPLOYMENT_STATUS_VALUES = [status.value for status in EmploymentStatus]
HIGHER_STUDY_STATUS_VALUES = [status.value for status in HigherStudyStatus]
LIST_FIELDS = ('skills', 'achievements', 'interests')


def check_employment_status(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    if value not in EMPLOYMENT_STATUS_VALUES:
        raise ValueError(f"Employment status must be one of: {', '.join(EMPLOYMENT_STATUS_VALUES)}")
    return value


def check_company_required(status: Optional[str], company: Optional[str]) -> None:
    """Employed and self-employed alumni must name their company"""
    if status in COMPANY_REQUIRED_STATUSES and not (company or "").strip():
        raise ValueError("Current company is required for employed or self-employed alumni")


class ProfileFields(BaseModel):
    """Every editable profile field, all optional"""
    middle_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(None, max_length=20)

    # Academic
    student_id: Optional[str] = Field(None, max_length=50)
    admission_year: Optional[int] = Field(None, ge=1950, le=2100)
    graduation_year: Optional[int] = Field(None, ge=1950, le=2100)
    degree: Optional[str] = Field(None, max_length=100)
    branch: Optional[str] = Field(None, max_length=255)
    cgpa: Optional[float] = Field(None, ge=0, le=10)

    # Employment
    employment_status: Optional[str] = None
    current_company: Optional[str] = Field(None, max_length=255)
    current_position: Optional[str] = Field(None, max_length=255)
    industry: Optional[str] = Field(None, max_length=255)
    work_experience_years: Optional[int] = Field(None, ge=0, le=80)

    skills: Optional[List[str]] = None
    achievements: Optional[List[str]] = None
    interests: Optional[List[str]] = None

    # Links
    linkedin_url: Optional[HttpUrl] = None
    github_url: Optional[HttpUrl] = None
    portfolio_url: Optional[HttpUrl] = None

    # Location
    current_city: Optional[str] = Field(None, max_length=100)
    current_state: Optional[str] = Field(None, max_length=100)
    current_country: Optional[str] = Field(None, max_length=100)
    hometown_city: Optional[str] = Field(None, max_length=100)
    hometown_state: Optional[str] = Field(None, max_length=100)

    bio: Optional[str] = Field(None, max_length=2000)

    # Visibility
    is_profile_public: Optional[bool] = None
    show_contact_info: Optional[bool] = None
    show_work_info: Optional[bool] = None
    show_academic_info: Optional[bool] = None
    is_open_to_work: Optional[bool] = None
    is_available_for_mentorship: Optional[bool] = None

    @field_validator(*LIST_FIELDS, mode='before')
    @classmethod
    def parse_list(cls, value):
        return split_list(value)

    @field_validator('employment_status')
    @classmethod
    def validate_employment_status(cls, value):
        return check_employment_status(value)

    def to_db_dict(self, exclude_unset: bool = True) -> Dict:
        """Column values, with URLs converted to plain strings"""
        data = self.model_dump(exclude_unset=exclude_unset)
        for key in ('linkedin_url', 'github_url', 'portfolio_url'):
            if data.get(key) is not None:
                data[key] = str(data[key])
        return data


class ProfileCreate(ProfileFields):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)

    @model_validator(mode='after')
    def validate_company(self):
        check_company_required(self.employment_status, self.current_company)
        return self


class ProfileUpdate(ProfileFields):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)


class EmploymentUpdate(BaseModel):
    employment_status: str
    current_company: Optional[str] = Field(None, max_length=255)
    current_position: Optional[str] = Field(None, max_length=255)
    industry: Optional[str] = Field(None, max_length=255)
    work_experience_years: Optional[int] = Field(None, ge=0, le=80)
    current_city: Optional[str] = Field(None, max_length=100)
    current_state: Optional[str] = Field(None, max_length=100)
    current_country: Optional[str] = Field(None, max_length=100)
    is_open_to_work: Optional[bool] = None

    @field_validator('employment_status')
    @classmethod
    def validate_employment_status(cls, value):
        if not check_employment_status(value):
            raise ValueError("Employment status is required")
        return value

    @model_validator(mode='after')
    def validate_company(self):
        check_company_required(self.employment_status, self.current_company)
        return self


class HigherEducationUpdate(BaseModel):
    higher_study_status: str
    higher_study_institution: Optional[str] = Field(None, max_length=255)
    higher_study_program: Optional[str] = Field(None, max_length=255)
    higher_study_field: Optional[str] = Field(None, max_length=255)
    higher_study_country: Optional[str] = Field(None, max_length=100)
    higher_study_year: Optional[int] = Field(None, ge=1950, le=2100)

    @field_validator('higher_study_status')
    @classmethod
    def validate_status(cls, value):
        if value not in HIGHER_STUDY_STATUS_VALUES:
            raise ValueError(f"Higher study status must be one of: {', '.join(HIGHER_STUDY_STATUS_VALUES)}")
        return value

    @model_validator(mode='after')
    def validate_institution(self):
        if self.higher_study_status in ("Pursuing", "Completed") and not self.higher_study_institution:
            raise ValueError("Institution is required when higher studies are pursued or completed")
        return self


class ConsentUpdate(BaseModel):
    consent_data_sharing: bool
    consent_contact: bool = False
    is_profile_public: Optional[bool] = None
    show_contact_info: Optional[bool] = None


class ProfileSummary(BaseModel):
    """Directory card"""
    id: str
    user_id: str
    first_name: str
    last_name: str
    profile_picture_url: Optional[str] = None
    graduation_year: Optional[int] = None
    degree: Optional[str] = None
    branch: Optional[str] = None
    current_company: Optional[str] = None
    current_position: Optional[str] = None
    current_city: Optional[str] = None
    current_country: Optional[str] = None
    skills: List[str] = []
    is_open_to_work: bool = False
    is_available_for_mentorship: bool = False

    class Config:
        from_attributes = True

    @field_validator('skills', mode='before')
    @classmethod
    def skills_default(cls, value):
        return value or []


class ProfileResponse(ProfileSummary):
    middle_name: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None

    student_id: Optional[str] = None
    admission_year: Optional[int] = None
    cgpa: Optional[float] = None

    employment_status: Optional[str] = None
    industry: Optional[str] = None
    work_experience_years: Optional[int] = None
    achievements: List[str] = []
    interests: List[str] = []

    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    portfolio_url: Optional[str] = None

    current_state: Optional[str] = None
    hometown_city: Optional[str] = None
    hometown_state: Optional[str] = None
    bio: Optional[str] = None

    higher_study_status: Optional[str] = None
    higher_study_institution: Optional[str] = None
    higher_study_program: Optional[str] = None
    higher_study_field: Optional[str] = None
    higher_study_country: Optional[str] = None
    higher_study_year: Optional[int] = None

    consent_data_sharing: bool = False
    consent_contact: bool = False
    consent_given_at: Optional[datetime] = None

    is_profile_public: bool = True
    show_contact_info: bool = False
    show_work_info: bool = True
    show_academic_info: bool = True

    email: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @field_validator('achievements', 'interests', mode='before')
    @classmethod
    def lists_default(cls, value):
        return value or []


class ProfileListResponse(PageMeta):
    items: List[ProfileSummary]


class SuggestionsResponse(BaseModel):
    type: str
    suggestions: List[str]


class RecommendationResponse(BaseModel):
    profile: ProfileSummary
    score: int
    reasons: List[str]


class CountItem(BaseModel):
    name: str
    count: int


class DashboardStats(BaseModel):
    total_alumni: int
    open_to_work: int
    mentors: int
    companies: int
    cities: int
    top_companies: List[CountItem]
    top_cities: List[CountItem]
    by_graduation_year: List[CountItem]
    by_branch: List[CountItem]
    employment_status: List[CountItem]
