from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from preschool.core.enums import AnnouncementPriority


class AnnouncementCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    priority: AnnouncementPriority = AnnouncementPriority.NORMAL
    announcement_date: Optional[date] = Field(None, description="Defaults to today")

    class Config:
        str_strip_whitespace = True


class AnnouncementUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = Field(None, min_length=1)
    priority: Optional[AnnouncementPriority] = None
    announcement_date: Optional[date] = None

    class Config:
        str_strip_whitespace = True


class AnnouncementResponse(BaseModel):
    id: UUID
    title: str
    content: str
    priority: AnnouncementPriority
    announcement_date: date
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
