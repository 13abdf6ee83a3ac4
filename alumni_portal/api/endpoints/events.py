from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy import select, func
from datetime import datetime
from typing import Optional, List, Set

from alumni_portal.core.database import get_db
from alumni_portal.core.exceptions import EventRegistrationError
from alumni_portal.core.logging_config import logger
from alumni_portal.core.types import is_valid_uuid
from alumni_portal.api.deps import get_current_user, get_optional_user, get_current_admin
from alumni_portal.models.event import Event, EventRegistration, EventStatus, RegistrationStatus
from alumni_portal.models.user import User
from alumni_portal.schemas.common import MessageResponse
from alumni_portal.schemas.event import (
    EventResponse,
    EventListResponse,
    EventRegistrationCreate,
    EventRegistrationResponse,
    EventTypeCount,
)
from alumni_portal.utils.pagination import paginate

router = APIRouter()


def event_filters(query, type: Optional[str] = None, status: Optional[str] = None, mode: Optional[str] = None):
    """Filters shared by the public and admin event listings"""
    if type:
        query = query.where(Event.event_type == type)
    if status:
        query = query.where(Event.status == status)
    if mode:
        query = query.where(Event.mode == mode)
    return query


async def registered_event_ids(db: AsyncSession, user: Optional[User], event_ids: List[str]) -> Set[str]:
    if user is None or not event_ids:
        return set()
    result = await db.execute(
        select(EventRegistration.event_id).where(
            EventRegistration.user_id == user.id,
            EventRegistration.event_id.in_(event_ids),
            EventRegistration.status == RegistrationStatus.REGISTERED.value,
        )
    )
    return set(result.scalars().all())


def event_response(event: Event, registered: Optional[bool] = None) -> EventResponse:
    response = EventResponse.model_validate(event)
    response.is_registered = registered
    return response


async def get_published_event(db: AsyncSession, event_id: str, lock: bool = False) -> Event:
    if not is_valid_uuid(event_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")

    query = select(Event).where(Event.id == event_id, Event.is_published.is_(True))
    if lock:
        query = query.with_for_update()
    result = await db.execute(query)
    event = result.scalar_one_or_none()
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


@router.get("", response_model=EventListResponse)
async def list_events(
    type: Optional[str] = Query(None, description="Event type"),
    status: Optional[str] = Query(None, description="upcoming, ongoing, completed or cancelled"),
    mode: Optional[str] = Query(None, description="online, offline or hybrid"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """Published events, soonest first"""
    query = select(Event).where(Event.is_published.is_(True))
    query = event_filters(query, type, status, mode)
    query = query.order_by(Event.start_datetime.asc())

    result = await paginate(db, query, page, page_size)
    registered = await registered_event_ids(db, current_user, [event.id for event in result["items"]])
    result["items"] = [
        event_response(event, event.id in registered if current_user else None)
        for event in result["items"]
    ]
    return result


@router.get("/types/list", response_model=List[EventTypeCount])
async def list_event_types(db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(Event.event_type, func.count(Event.id))
        .where(Event.is_published.is_(True))
        .group_by(Event.event_type)
        .order_by(func.count(Event.id).desc(), Event.event_type)
    )
    return [{"event_type": event_type, "count": count} for event_type, count in result.all()]


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: str,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    event = await get_published_event(db, event_id)
    registered = await registered_event_ids(db, current_user, [event.id])
    return event_response(event, event.id in registered if current_user else None)


@router.post("/{event_id}/register", response_model=EventRegistrationResponse, status_code=status.HTTP_201_CREATED)
async def register_for_event(
    event_id: str,
    registration_data: Optional[EventRegistrationCreate] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Register the current user for an event"""
    event = await get_published_event(db, event_id, lock=True)

    if event.status == EventStatus.CANCELLED.value:
        raise EventRegistrationError("Event has been cancelled")
    if event.status == EventStatus.COMPLETED.value:
        raise EventRegistrationError("Registration is closed for this event")
    if event.registration_deadline and event.registration_deadline < datetime.utcnow():
        raise EventRegistrationError("Registration deadline has passed")
    if event.is_full:
        raise EventRegistrationError("Event is full")

    result = await db.execute(
        select(EventRegistration).where(
            EventRegistration.event_id == event.id,
            EventRegistration.user_id == current_user.id,
        )
    )
    registration = result.scalar_one_or_none()
    if registration and registration.status == RegistrationStatus.REGISTERED.value:
        raise EventRegistrationError("Already registered for this event")

    registration_data = registration_data or EventRegistrationCreate()
    if registration:
        # re-registering after a cancellation reuses the row
        registration.status = RegistrationStatus.REGISTERED.value
        registration.motivation = registration_data.motivation
        registration.relevant_experience = registration_data.relevant_experience
    else:
        registration = EventRegistration(
            event_id=event.id,
            user_id=current_user.id,
            motivation=registration_data.motivation,
            relevant_experience=registration_data.relevant_experience,
        )
        db.add(registration)

    event.current_participants = (event.current_participants or 0) + 1
    await db.commit()
    await db.refresh(registration)

    logger.info(f"[Events] {current_user.email} registered for event {event.id}")
    response = EventRegistrationResponse.model_validate(registration)
    response.user_email = current_user.email
    return response


@router.delete("/{event_id}/register", response_model=MessageResponse)
async def cancel_registration(
    event_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    event = await get_published_event(db, event_id, lock=True)

    result = await db.execute(
        select(EventRegistration).where(
            EventRegistration.event_id == event.id,
            EventRegistration.user_id == current_user.id,
            EventRegistration.status == RegistrationStatus.REGISTERED.value,
        )
    )
    registration = result.scalar_one_or_none()
    if not registration:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Registration not found")

    registration.status = RegistrationStatus.CANCELLED.value
    event.current_participants = max(0, (event.current_participants or 0) - 1)
    await db.commit()

    return {"success": True, "message": "Registration cancelled"}


@router.get("/{event_id}/registrations", response_model=List[EventRegistrationResponse])
async def list_registrations(
    event_id: str,
    include_cancelled: bool = False,
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Registrations for an event (admin only)"""
    if not is_valid_uuid(event_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    event = await db.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")

    query = (
        select(EventRegistration)
        .options(selectinload(EventRegistration.user).selectinload(User.profile))
        .where(EventRegistration.event_id == event.id)
        .order_by(EventRegistration.created_at.asc())
    )
    if not include_cancelled:
        query = query.where(EventRegistration.status == RegistrationStatus.REGISTERED.value)
    result = await db.execute(query)

    items = []
    for registration in result.scalars().all():
        response = EventRegistrationResponse.model_validate(registration)
        user = registration.user
        if user is not None:
            response.user_email = user.email
            response.user_name = user.profile.full_name if user.profile else None
        items.append(response)
    return items
