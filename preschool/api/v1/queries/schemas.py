from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from preschool.core.enums import QueryStatus


class QueryCreate(BaseModel):
    subject: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)

    class Config:
        str_strip_whitespace = True


class QueryUpdate(BaseModel):
    status: QueryStatus
    admin_response: Optional[str] = None

    class Config:
        str_strip_whitespace = True


class QueryResponse(BaseModel):
    id: UUID
    parent_id: UUID
    subject: str
    message: str
    attachment_url: Optional[str] = None
    status: QueryStatus
    admin_response: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class QueryParent(BaseModel):
    id: UUID
    email: EmailStr
    full_name: Optional[str] = None
    phone: Optional[str] = None

    class Config:
        from_attributes = True


class QueryWithParent(QueryResponse):
    parent: Optional[QueryParent] = None
