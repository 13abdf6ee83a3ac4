"""
Admin event management endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy import select
from datetime import datetime
from enum import Enum
from typing import Optional

from alumni_portal.core.database import get_db
from alumni_portal.core.logging_config import logger
from alumni_portal.core.types import is_valid_uuid
from alumni_portal.api.deps import get_current_admin
from alumni_portal.api.endpoints.events import event_filters, event_response
from alumni_portal.models.event import Event
from alumni_portal.models.user import User
from alumni_portal.schemas.common import MessageResponse
from alumni_portal.schemas.event import EventCreate, EventUpdate, EventResponse, EventListResponse
from alumni_portal.utils.pagination import paginate

router = APIRouter()

REQUIRED_FIELDS = ("title", "description", "event_type", "mode", "start_datetime", "end_datetime", "status", "is_published")


async def get_event_or_404(db: AsyncSession, event_id: str, with_registrations: bool = False) -> Event:
    if not is_valid_uuid(event_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    query = select(Event).where(Event.id == event_id)
    if with_registrations:
        query = query.options(selectinload(Event.registrations))
    result = await db.execute(query)
    event = result.scalar_one_or_none()
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


def column_values(data: dict) -> dict:
    """Enum members to the plain strings stored in the table"""
    return {
        key: value.value if isinstance(value, Enum) else value
        for key, value in data.items()
    }


@router.get("", response_model=EventListResponse)
async def list_all_events(
    type: Optional[str] = None,
    status: Optional[str] = None,
    mode: Optional[str] = None,
    is_published: Optional[bool] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """All events, drafts included, newest first"""
    query = event_filters(select(Event), type, status, mode)
    if is_published is not None:
        query = query.where(Event.is_published == is_published)
    query = query.order_by(Event.start_datetime.desc())

    result = await paginate(db, query, page, page_size)
    result["items"] = [event_response(event) for event in result["items"]]
    return result


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    event_data: EventCreate,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    event = Event(**column_values(event_data.model_dump()), organizer_id=current_admin.id)
    db.add(event)
    await db.commit()
    await db.refresh(event)

    logger.log_admin_action("create_event", current_admin.email, target=event.title)
    return event_response(event)


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: str,
    event_data: EventUpdate,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Partial update; the resulting schedule must still end after it starts"""
    event = await get_event_or_404(db, event_id)
    changes = column_values(event_data.model_dump(exclude_unset=True))
    for field in REQUIRED_FIELDS:
        if field in changes and changes[field] is None:
            changes.pop(field)

    start = changes.get("start_datetime", event.start_datetime)
    end = changes.get("end_datetime", event.end_datetime)
    if end <= start:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="End date must be after start date")

    max_participants = changes.get("max_participants", event.max_participants)
    if max_participants is not None and max_participants < event.current_participants:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Maximum participants cannot be lower than current registrations"
        )

    for field, value in changes.items():
        setattr(event, field, value)
    event.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(event)

    logger.log_admin_action("update_event", current_admin.email, target=event.id)
    return event_response(event)


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    event = await get_event_or_404(db, event_id, with_registrations=True)
    await db.delete(event)
    await db.commit()

    logger.log_admin_action("delete_event", current_admin.email, target=event_id)
    return {"success": True, "message": "Event deleted successfully"}
