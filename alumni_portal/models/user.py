from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from alumni_portal.core.database import Base
from alumni_portal.core.types import GUID, generate_uuid


class UserRole(str, enum.Enum):
    """User roles"""
    ALUMNI = "alumni"
    ADMIN = "admin"


class AuthProvider(str, enum.Enum):
    """Where the account's credentials come from"""
    LOCAL = "local"
    GOOGLE = "google"
    LINKEDIN = "linkedin"


class RegistrationPath(str, enum.Enum):
    """How the account proved it belongs to an alumnus"""
    INSTITUTE_EMAIL = "institute_email"
    PERSONAL_EMAIL = "personal_email"


class User(Base):
    """User model"""
    __tablename__ = "users"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=True)

    role = Column(SQLEnum(UserRole), default=UserRole.ALUMNI, nullable=False)
    is_approved = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    email_verified = Column(Boolean, default=False, nullable=False)
    onboarding_completed = Column(Boolean, default=False, nullable=False)

    # OAuth fields
    provider = Column(SQLEnum(AuthProvider), default=AuthProvider.LOCAL, nullable=False)
    provider_id = Column(String(255), nullable=True)

    # Verification against institute records
    registration_path = Column(SQLEnum(RegistrationPath), nullable=True)
    institute_record_id = Column(
        GUID, ForeignKey("institute_records.id", ondelete="SET NULL"), nullable=True, unique=True, index=True
    )

    # Password reset fields
    reset_token_hash = Column(String(255), nullable=True)
    reset_token_expires = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login = Column(DateTime, nullable=True)

    # Relationships
    institute_record = relationship("InstituteRecord", back_populates="users")
    profile = relationship(
        "AlumniProfile", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    news_articles = relationship("News", back_populates="author")
    event_registrations = relationship(
        "EventRegistration", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self):
        return f"<User {self.email}>"
