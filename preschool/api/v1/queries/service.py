"""Help queries raised by parents and answered by admins."""

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from fastapi import UploadFile, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from preschool.auth.schemas import CurrentUser
from preschool.core.enums import QueryStatus
from preschool.core.exceptions import ServiceError
from preschool.core.lifecycle import transition_query
from preschool.core.models import HelpQuery
from preschool.storage.backend import (
    BUCKET_ATTACHMENTS,
    LocalStorage,
    StorageError,
    file_extension,
    random_suffix,
    timestamp_ms,
)

from .schemas import QueryCreate, QueryParent, QueryResponse, QueryUpdate, QueryWithParent

logger = logging.getLogger(__name__)


def to_query_with_parent(q: HelpQuery) -> QueryWithParent:
    return QueryWithParent(
        **QueryResponse.model_validate(q).model_dump(),
        parent=QueryParent.model_validate(q.parent) if q.parent is not None else None,
    )


async def _store_attachment(
    storage: LocalStorage, current_user: CurrentUser, file: UploadFile
) -> Tuple[Optional[str], Optional[str]]:
    """Returns (object path, public URL), or (None, None) for an empty upload."""
    data = await file.read()
    if not data:
        return None, None
    path = f"{current_user.id}/{timestamp_ms()}_{random_suffix()}.{file_extension(file.filename)}"
    try:
        return path, await storage.upload(BUCKET_ATTACHMENTS, path, data)
    except StorageError as e:
        logger.error("Attachment upload failed for %s: %s", current_user.id, e)
        raise ServiceError("Attachment upload failed") from e


async def submit_query(
    db: AsyncSession,
    storage: LocalStorage,
    current_user: CurrentUser,
    payload: QueryCreate,
    attachment: Optional[UploadFile] = None,
) -> QueryResponse:
    attachment_path, attachment_url = None, None
    if attachment is not None:
        attachment_path, attachment_url = await _store_attachment(storage, current_user, attachment)

    query = HelpQuery(
        parent_id=current_user.id,
        subject=payload.subject,
        message=payload.message,
        attachment_url=attachment_url,
        status=QueryStatus.OPEN.value,
    )
    db.add(query)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to submit query for %s", current_user.id)
        if attachment_path:
            await storage.discard(BUCKET_ATTACHMENTS, [attachment_path])
        raise ServiceError("Failed to submit query") from e
    await db.refresh(query)
    logger.info("Query %s submitted by %s", query.id, current_user.id)
    return QueryResponse.model_validate(query)


async def list_my_queries(db: AsyncSession, current_user: CurrentUser) -> List[QueryResponse]:
    result = await db.execute(
        select(HelpQuery)
        .where(HelpQuery.parent_id == current_user.id)
        .order_by(HelpQuery.created_at.desc())
    )
    return [QueryResponse.model_validate(q) for q in result.scalars().all()]


async def list_all_queries(
    db: AsyncSession,
    status_filter: Optional[QueryStatus] = None,
) -> List[QueryWithParent]:
    stmt = select(HelpQuery).options(selectinload(HelpQuery.parent))
    if status_filter is not None:
        stmt = stmt.where(HelpQuery.status == status_filter.value)
    result = await db.execute(stmt.order_by(HelpQuery.created_at.desc()))
    return [to_query_with_parent(q) for q in result.scalars().all()]


async def update_query(
    db: AsyncSession,
    current_user: CurrentUser,
    query_id: UUID,
    payload: QueryUpdate,
) -> QueryWithParent:
    result = await db.execute(
        select(HelpQuery).options(selectinload(HelpQuery.parent)).where(HelpQuery.id == query_id)
    )
    query = result.scalar_one_or_none()
    if not query:
        raise ServiceError("Query not found", status.HTTP_404_NOT_FOUND)

    previous = query.status
    new_status = transition_query(previous, payload.status)
    if new_status == QueryStatus.REPLIED and not payload.admin_response:
        raise ServiceError("A reply requires admin_response", status.HTTP_400_BAD_REQUEST)

    query.status = new_status.value
    if payload.admin_response is not None:
        query.admin_response = payload.admin_response
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to update query %s", query_id)
        raise ServiceError("Failed to update query") from e
    await db.refresh(query)
    logger.info("Query %s: %s -> %s by %s", query.id, previous, query.status, current_user.id)
    return to_query_with_parent(query)
