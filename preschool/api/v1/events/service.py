"""
Events. Upcoming and past listings are classified by comparing event_date with today;
the stored event_type is informational only.
"""

import logging
from datetime import date
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from fastapi import UploadFile, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from preschool.auth.schemas import CurrentUser
from preschool.core.exceptions import ServiceError
from preschool.core.models import Event
from preschool.storage.backend import (
    BUCKET_EVENTS,
    LocalStorage,
    StorageError,
    file_extension,
    random_suffix,
    timestamp_ms,
)

from .schemas import EventCreate, EventResponse, EventUpdate

logger = logging.getLogger(__name__)

UPCOMING_LIMIT = 5


def _to_response(e: Event) -> EventResponse:
    return EventResponse.model_validate(e)


async def upload_event_photos(storage: LocalStorage, files: Sequence[UploadFile]) -> Tuple[List[str], List[str]]:
    """
    Upload photos one after another. Returns (object paths, public URLs).
    Any failure removes the photos already stored by this call and aborts with an error.
    """
    paths: List[str] = []
    urls: List[str] = []
    for f in files:
        data = await f.read()
        if not data:
            continue
        path = f"event_{timestamp_ms()}_{random_suffix()}.{file_extension(f.filename)}"
        try:
            urls.append(await storage.upload(BUCKET_EVENTS, path, data))
        except StorageError as e:
            logger.error("Event photo upload failed: %s", e)
            await storage.discard(BUCKET_EVENTS, paths)
            raise ServiceError("Photo upload failed") from e
        paths.append(path)
    return paths, urls


async def list_events(db: AsyncSession) -> List[EventResponse]:
    result = await db.execute(select(Event).order_by(Event.event_date, Event.created_at))
    return [_to_response(e) for e in result.scalars().all()]


async def list_upcoming_events(
    db: AsyncSession,
    limit: int = UPCOMING_LIMIT,
    today: Optional[date] = None,
) -> List[EventResponse]:
    today = today or date.today()
    result = await db.execute(
        select(Event)
        .where(Event.event_date >= today)
        .order_by(Event.event_date, Event.created_at)
        .limit(limit)
    )
    return [_to_response(e) for e in result.scalars().all()]


async def list_past_events(db: AsyncSession, today: Optional[date] = None) -> List[EventResponse]:
    today = today or date.today()
    result = await db.execute(
        select(Event).where(Event.event_date < today).order_by(Event.event_date.desc())
    )
    return [_to_response(e) for e in result.scalars().all()]


async def create_event(
    db: AsyncSession,
    storage: LocalStorage,
    current_user: CurrentUser,
    payload: EventCreate,
    photos: Sequence[UploadFile] = (),
) -> EventResponse:
    photo_paths, photo_urls = await upload_event_photos(storage, photos)
    event = Event(
        title=payload.title,
        description=payload.description,
        event_date=payload.event_date,
        event_type=payload.event_type.value,
        photos=photo_urls,
        created_by=current_user.id,
    )
    db.add(event)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to create event %r", payload.title)
        await storage.discard(BUCKET_EVENTS, photo_paths)
        raise ServiceError("Failed to create event") from e
    await db.refresh(event)
    logger.info("Event %s created with %d photo(s)", event.id, len(photo_urls))
    return _to_response(event)


async def _get_event(db: AsyncSession, event_id: UUID) -> Event:
    event = await db.get(Event, event_id)
    if not event:
        raise ServiceError("Event not found", status.HTTP_404_NOT_FOUND)
    return event


async def update_event(db: AsyncSession, event_id: UUID, payload: EventUpdate) -> EventResponse:
    event = await _get_event(db, event_id)
    data = payload.model_dump(exclude_unset=True)
    for field, value in data.items():
        if value is None:
            continue
        if field == "event_type":
            value = value.value
        elif field == "photos":
            value = list(value)
        setattr(event, field, value)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to update event %s", event_id)
        raise ServiceError("Failed to update event") from e
    await db.refresh(event)
    return _to_response(event)


async def add_event_photos(
    db: AsyncSession,
    storage: LocalStorage,
    event_id: UUID,
    photos: Sequence[UploadFile],
) -> EventResponse:
    event = await _get_event(db, event_id)
    new_paths, new_urls = await upload_event_photos(storage, photos)
    # Reassign so the JSON column is marked dirty
    event.photos = list(event.photos or []) + new_urls
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to add photos to event %s", event_id)
        await storage.discard(BUCKET_EVENTS, new_paths)
        raise ServiceError("Failed to add event photos") from e
    await db.refresh(event)
    logger.info("Added %d photo(s) to event %s", len(new_urls), event.id)
    return _to_response(event)


async def delete_event(db: AsyncSession, event_id: UUID) -> None:
    event = await _get_event(db, event_id)
    await db.delete(event)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to delete event %s", event_id)
        raise ServiceError("Failed to delete event") from e
    logger.info("Event %s deleted", event_id)
