from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime, timezone

from alumni_portal.models.event import EventStatus, EventMode, RegistrationStatus
from alumni_portal.schemas.common import PageMeta

EVENT_TYPES = [
    "reunion",
    "networking",
    "webinar",
    "workshop",
    "career-fair",
    "seminar",
    "social",
    "other",
]


class EventBase(BaseModel):
    location: Optional[str] = Field(None, max_length=500)
    registration_deadline: Optional[datetime] = None
    max_participants: Optional[int] = Field(None, ge=1)

    @field_validator('start_datetime', 'end_datetime', 'registration_deadline', check_fields=False)
    @classmethod
    def to_naive_utc(cls, value):
        # columns are TIMESTAMP WITHOUT TIME ZONE holding UTC
        if value is not None and value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    @field_validator('event_type', check_fields=False)
    @classmethod
    def validate_event_type(cls, value):
        if value is not None and value not in EVENT_TYPES:
            raise ValueError(f"Event type must be one of: {', '.join(EVENT_TYPES)}")
        return value


class EventCreate(EventBase):
    title: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., min_length=1)
    event_type: str = "other"
    mode: EventMode = EventMode.OFFLINE
    start_datetime: datetime
    end_datetime: datetime
    status: EventStatus = EventStatus.UPCOMING
    is_published: bool = False

    @model_validator(mode='after')
    def validate_schedule(self):
        if self.end_datetime <= self.start_datetime:
            raise ValueError("End date must be after start date")
        return self


class EventUpdate(EventBase):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = Field(None, min_length=1)
    event_type: Optional[str] = None
    mode: Optional[EventMode] = None
    start_datetime: Optional[datetime] = None
    end_datetime: Optional[datetime] = None
    status: Optional[EventStatus] = None
    is_published: Optional[bool] = None


class EventResponse(BaseModel):
    id: str
    title: str
    description: str
    event_type: str
    mode: str
    location: Optional[str] = None
    start_datetime: datetime
    end_datetime: datetime
    registration_deadline: Optional[datetime] = None
    max_participants: Optional[int] = None
    current_participants: int = 0
    status: str
    is_published: bool
    organizer_id: Optional[str] = None
    is_registered: Optional[bool] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EventListResponse(PageMeta):
    items: List[EventResponse]


class EventRegistrationCreate(BaseModel):
    motivation: Optional[str] = Field(None, max_length=2000)
    relevant_experience: Optional[str] = Field(None, max_length=2000)


class EventRegistrationResponse(BaseModel):
    id: str
    event_id: str
    user_id: str
    status: RegistrationStatus
    motivation: Optional[str] = None
    relevant_experience: Optional[str] = None
    user_email: Optional[str] = None
    user_name: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class EventTypeCount(BaseModel):
    event_type: str
    count: int
