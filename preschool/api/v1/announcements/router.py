from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from preschool.auth.dependencies import get_current_user
from preschool.auth.rbac import require_admin
from preschool.auth.schemas import CurrentUser
from preschool.core.exceptions import ServiceError
from preschool.db.session import get_db

from .schemas import AnnouncementCreate, AnnouncementResponse, AnnouncementUpdate
from . import service

router = APIRouter(prefix="/api/v1/announcements", tags=["announcements"])


@router.get("", response_model=List[AnnouncementResponse], dependencies=[Depends(get_current_user)])
async def list_announcements(db: AsyncSession = Depends(get_db)) -> List[AnnouncementResponse]:
    return await service.list_announcements(db)


@router.get("/recent", response_model=List[AnnouncementResponse], dependencies=[Depends(get_current_user)])
async def list_recent_announcements(
    limit: int = Query(3, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
) -> List[AnnouncementResponse]:
    return await service.list_recent_announcements(db, limit)


@router.post("", response_model=AnnouncementResponse, status_code=status.HTTP_201_CREATED)
async def create_announcement(
    payload: AnnouncementCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> AnnouncementResponse:
    try:
        return await service.create_announcement(db, current_user, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{announcement_id}", response_model=AnnouncementResponse, dependencies=[Depends(require_admin)])
async def update_announcement(
    announcement_id: UUID,
    payload: AnnouncementUpdate,
    db: AsyncSession = Depends(get_db),
) -> AnnouncementResponse:
    try:
        return await service.update_announcement(db, announcement_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete(
    "/{announcement_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def delete_announcement(
    announcement_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> Response:
    try:
        await service.delete_announcement(db, announcement_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
