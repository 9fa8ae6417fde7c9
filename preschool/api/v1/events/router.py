from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from preschool.auth.dependencies import get_current_user
from preschool.auth.rbac import require_admin
from preschool.auth.schemas import CurrentUser
from preschool.core.enums import EventType
from preschool.core.exceptions import ServiceError
from preschool.db.session import get_db
from preschool.storage.backend import LocalStorage, get_storage

from .schemas import EventCreate, EventResponse, EventUpdate
from . import service

router = APIRouter(prefix="/api/v1/events", tags=["events"])


@router.get("", response_model=List[EventResponse], dependencies=[Depends(get_current_user)])
async def list_events(db: AsyncSession = Depends(get_db)) -> List[EventResponse]:
    """All events ordered by date."""
    return await service.list_events(db)


@router.get("/upcoming", response_model=List[EventResponse], dependencies=[Depends(get_current_user)])
async def list_upcoming_events(db: AsyncSession = Depends(get_db)) -> List[EventResponse]:
    """Next five events on or after today."""
    return await service.list_upcoming_events(db)


@router.get("/past", response_model=List[EventResponse], dependencies=[Depends(get_current_user)])
async def list_past_events(db: AsyncSession = Depends(get_db)) -> List[EventResponse]:
    return await service.list_past_events(db)


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    title: str = Form(..., min_length=1, max_length=255),
    description: str = Form(..., min_length=1),
    event_date: date = Form(...),
    event_type: EventType = Form(EventType.UPCOMING),
    photos: Optional[List[UploadFile]] = File(None),
    db: AsyncSession = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
    current_user: CurrentUser = Depends(require_admin),
) -> EventResponse:
    try:
        payload = EventCreate(
            title=title,
            description=description,
            event_date=event_date,
            event_type=event_type,
        )
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False))
    try:
        return await service.create_event(db, storage, current_user, payload, photos or [])
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{event_id}", response_model=EventResponse, dependencies=[Depends(require_admin)])
async def update_event(
    event_id: UUID,
    payload: EventUpdate,
    db: AsyncSession = Depends(get_db),
) -> EventResponse:
    try:
        return await service.update_event(db, event_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{event_id}/photos", response_model=EventResponse, dependencies=[Depends(require_admin)])
async def add_event_photos(
    event_id: UUID,
    photos: List[UploadFile] = File(...),
    db: AsyncSession = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
) -> EventResponse:
    try:
        return await service.add_event_photos(db, storage, event_id, photos)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_admin)])
async def delete_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> Response:
    try:
        await service.delete_event(db, event_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
