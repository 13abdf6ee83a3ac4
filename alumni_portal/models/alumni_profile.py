from sqlalchemy import (
    Column, String, Boolean, DateTime, Date, Integer, Numeric, Text, JSON, ForeignKey, cast, or_
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum
import json

from alumni_portal.core.database import Base
from alumni_portal.core.types import GUID, generate_uuid


class EmploymentStatus(str, enum.Enum):
    """Current employment situation reported by an alumnus"""
    EMPLOYED = "Employed"
    SELF_EMPLOYED = "Self-employed"
    UNEMPLOYED = "Unemployed"
    HIGHER_STUDIES = "Higher Studies"
    PREPARING_FOR_EXAMS = "Preparing for exams"
    OTHER = "Other"


# Statuses where the company name must be filled in
COMPANY_REQUIRED_STATUSES = {EmploymentStatus.EMPLOYED.value, EmploymentStatus.SELF_EMPLOYED.value}


class HigherStudyStatus(str, enum.Enum):
    PURSUING = "Pursuing"
    COMPLETED = "Completed"
    PLANNING = "Planning"
    NOT_APPLICABLE = "Not applicable"


class AlumniProfile(Base):
    """Extended alumni data attached to a user account"""
    __tablename__ = "alumni_profiles"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(
        GUID, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True
    )

    # Basic information
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    middle_name = Column(String(100), nullable=True)
    profile_picture_url = Column(String(500), nullable=True)
    phone = Column(String(20), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)

    # Academic
    student_id = Column(String(50), nullable=True)
    admission_year = Column(Integer, nullable=True)
    graduation_year = Column(Integer, nullable=True, index=True)
    degree = Column(String(100), nullable=True)
    branch = Column(String(255), nullable=True, index=True)
    cgpa = Column(Numeric(4, 2), nullable=True)

    # Employment
    employment_status = Column(String(50), nullable=True)
    current_company = Column(String(255), nullable=True, index=True)
    current_position = Column(String(255), nullable=True)
    industry = Column(String(255), nullable=True)
    work_experience_years = Column(Integer, default=0)

    skills = Column(JSON, default=list)
    achievements = Column(JSON, default=list)
    interests = Column(JSON, default=list)

    # Links
    linkedin_url = Column(String(500), nullable=True)
    github_url = Column(String(500), nullable=True)
    portfolio_url = Column(String(500), nullable=True)

    # Location
    current_city = Column(String(100), nullable=True, index=True)
    current_state = Column(String(100), nullable=True)
    current_country = Column(String(100), default="India")
    hometown_city = Column(String(100), nullable=True)
    hometown_state = Column(String(100), nullable=True)

    bio = Column(Text, nullable=True)

    # Higher education
    higher_study_status = Column(String(50), nullable=True)
    higher_study_institution = Column(String(255), nullable=True)
    higher_study_program = Column(String(255), nullable=True)
    higher_study_field = Column(String(255), nullable=True)
    higher_study_country = Column(String(100), nullable=True)
    higher_study_year = Column(Integer, nullable=True)

    # Consent
    consent_data_sharing = Column(Boolean, default=False, nullable=False)
    consent_contact = Column(Boolean, default=False, nullable=False)
    consent_given_at = Column(DateTime, nullable=True)

    # Visibility
    is_profile_public = Column(Boolean, default=True, nullable=False)
    show_contact_info = Column(Boolean, default=False, nullable=False)
    show_work_info = Column(Boolean, default=True, nullable=False)
    show_academic_info = Column(Boolean, default=True, nullable=False)

    is_open_to_work = Column(Boolean, default=False, nullable=False)
    is_available_for_mentorship = Column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="profile")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @property
    def work_visible(self) -> bool:
        return self.show_work_info is not False

    @property
    def academic_visible(self) -> bool:
        return self.show_academic_info is not False

    def __repr__(self):
        return f"<AlumniProfile {self.first_name} {self.last_name}>"


def _like_literal(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def has_skill(skill: str):
    """SQL filter: the skills JSON list contains `skill` (case-insensitive)

    Matches the whole JSON string element, so `%` and `_` in a skill are literal.
    Non-ASCII skills match whether the stored JSON text is UTF-8 or \\u-escaped.
    """
    column = cast(AlumniProfile.skills, String)
    skill = skill.strip()
    forms = sorted({json.dumps(skill), json.dumps(skill, ensure_ascii=False)})
    return or_(*[column.ilike(f"%{_like_literal(form)}%", escape="\\") for form in forms])
