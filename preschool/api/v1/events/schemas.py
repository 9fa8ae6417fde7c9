from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from preschool.core.enums import EventType


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    event_date: date
    event_type: EventType = EventType.UPCOMING

    class Config:
        str_strip_whitespace = True


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    event_date: Optional[date] = None
    event_type: Optional[EventType] = None
    photos: Optional[List[str]] = Field(None, description="Replace the photo URL list (e.g. to remove a photo)")

    class Config:
        str_strip_whitespace = True


class EventResponse(BaseModel):
    id: UUID
    title: str
    description: str
    event_date: date
    event_type: EventType
    photos: List[str] = Field(default_factory=list)
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
