"""
Announcements are ordered by priority rank (high, normal, low) and then by
announcement_date, newest first.
"""

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import case, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from preschool.auth.schemas import CurrentUser
from preschool.core.enums import PRIORITY_RANK
from preschool.core.exceptions import ServiceError
from preschool.core.models import Announcement

from .schemas import AnnouncementCreate, AnnouncementResponse, AnnouncementUpdate

logger = logging.getLogger(__name__)

# Unknown priorities sort after low
_priority_order = case(PRIORITY_RANK, value=Announcement.priority, else_=len(PRIORITY_RANK))


def _ordered_query():
    return select(Announcement).order_by(
        _priority_order,
        Announcement.announcement_date.desc(),
        Announcement.created_at.desc(),
    )


async def list_announcements(db: AsyncSession) -> List[AnnouncementResponse]:
    result = await db.execute(_ordered_query())
    return [AnnouncementResponse.model_validate(a) for a in result.scalars().all()]


async def list_recent_announcements(db: AsyncSession, limit: int = 3) -> List[AnnouncementResponse]:
    result = await db.execute(_ordered_query().limit(limit))
    return [AnnouncementResponse.model_validate(a) for a in result.scalars().all()]


async def create_announcement(
    db: AsyncSession,
    current_user: CurrentUser,
    payload: AnnouncementCreate,
) -> AnnouncementResponse:
    announcement = Announcement(
        title=payload.title,
        content=payload.content,
        priority=payload.priority.value,
        announcement_date=payload.announcement_date or date.today(),
        created_by=current_user.id,
    )
    db.add(announcement)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to create announcement %r", payload.title)
        raise ServiceError("Failed to create announcement") from e
    await db.refresh(announcement)
    logger.info("Announcement %s created (priority=%s)", announcement.id, announcement.priority)
    return AnnouncementResponse.model_validate(announcement)


async def _get_announcement(db: AsyncSession, announcement_id: UUID) -> Announcement:
    announcement = await db.get(Announcement, announcement_id)
    if not announcement:
        raise ServiceError("Announcement not found", status.HTTP_404_NOT_FOUND)
    return announcement


async def update_announcement(
    db: AsyncSession,
    announcement_id: UUID,
    payload: AnnouncementUpdate,
) -> AnnouncementResponse:
    announcement = await _get_announcement(db, announcement_id)
    for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        if field == "priority":
            value = value.value
        setattr(announcement, field, value)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to update announcement %s", announcement_id)
        raise ServiceError("Failed to update announcement") from e
    await db.refresh(announcement)
    return AnnouncementResponse.model_validate(announcement)


async def delete_announcement(db: AsyncSession, announcement_id: UUID) -> None:
    announcement = await _get_announcement(db, announcement_id)
    await db.delete(announcement)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to delete announcement %s", announcement_id)
        raise ServiceError("Failed to delete announcement") from e
    logger.info("Announcement %s deleted", announcement_id)
