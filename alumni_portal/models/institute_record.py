from sqlalchemy import Column, String, Boolean, DateTime, Date, Integer
from sqlalchemy.orm import relationship
from datetime import datetime

from alumni_portal.core.database import Base
from alumni_portal.core.types import GUID, generate_uuid


class InstituteRecord(Base):
    """Official student record imported from the institute's spreadsheets"""
    __tablename__ = "institute_records"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    roll_number = Column(String(50), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=False)
    date_of_birth = Column(Date, nullable=False)

    # Academic
    enrollment_year = Column(Integer, nullable=True, index=True)
    degree = Column(String(50), nullable=True)
    branch = Column(String(255), nullable=True, index=True)

    # Contact
    institute_email = Column(String(255), nullable=True)
    contact_number = Column(String(20), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    users = relationship("User", back_populates="institute_record")

    def __repr__(self):
        return f"<InstituteRecord {self.roll_number}>"
