from sqlalchemy import (
    Column, String, Boolean, DateTime, Integer, Text, ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from alumni_portal.core.database import Base
from alumni_portal.core.types import GUID, generate_uuid


class EventStatus(str, enum.Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EventMode(str, enum.Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    HYBRID = "hybrid"


class RegistrationStatus(str, enum.Enum):
    REGISTERED = "registered"
    CANCELLED = "cancelled"


class Event(Base):
    """Event model"""
    __tablename__ = "events"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=False)
    event_type = Column(String(50), default="other", nullable=False, index=True)
    mode = Column(String(20), default=EventMode.OFFLINE.value, nullable=False)
    location = Column(String(500), nullable=True)

    # Schedule
    start_datetime = Column(DateTime, nullable=False, index=True)
    end_datetime = Column(DateTime, nullable=False)
    registration_deadline = Column(DateTime, nullable=True)

    # Capacity
    max_participants = Column(Integer, nullable=True)
    current_participants = Column(Integer, default=0, nullable=False)

    status = Column(String(20), default=EventStatus.UPCOMING.value, nullable=False)
    is_published = Column(Boolean, default=False, nullable=False)

    organizer_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    registrations = relationship(
        "EventRegistration", back_populates="event", cascade="all, delete-orphan"
    )

    @property
    def is_full(self) -> bool:
        return self.max_participants is not None and self.current_participants >= self.max_participants

    def __repr__(self):
        return f"<Event {self.title}>"


class EventRegistration(Base):
    """A user's registration for an event"""
    __tablename__ = "event_registrations"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_registration_event_user"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    event_id = Column(GUID, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    status = Column(String(20), default=RegistrationStatus.REGISTERED.value, nullable=False)
    motivation = Column(Text, nullable=True)
    relevant_experience = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    event = relationship("Event", back_populates="registrations")
    user = relationship("User", back_populates="event_registrations")

    def __repr__(self):
        return f"<EventRegistration {self.event_id}:{self.user_id}>"
