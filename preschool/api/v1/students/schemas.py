from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class StudentUpdate(BaseModel):
    """Partial update by the owning parent or an admin."""

    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(None, min_length=1, max_length=20)
    class_name: Optional[str] = Field(None, min_length=1, max_length=50)
    academic_year: Optional[str] = Field(None, min_length=1, max_length=20)
    assigned_teacher: Optional[str] = Field(None, max_length=255)
    emergency_contact_name: Optional[str] = Field(None, min_length=1, max_length=255)
    emergency_contact_phone: Optional[str] = Field(None, min_length=1, max_length=50)
    emergency_contact_relationship: Optional[str] = Field(None, min_length=1, max_length=100)
    medical_conditions: Optional[str] = None
    allergies: Optional[str] = None
    residential_address: Optional[str] = None
    correspondence_address: Optional[str] = None
    mother_phone: Optional[str] = Field(None, max_length=50)
    mother_email: Optional[EmailStr] = None
    father_phone: Optional[str] = Field(None, max_length=50)
    father_email: Optional[EmailStr] = None
    preferred_whatsapp: Optional[str] = Field(None, max_length=50)

    class Config:
        str_strip_whitespace = True


class StudentResponse(BaseModel):
    id: UUID
    parent_id: UUID
    full_name: str
    date_of_birth: date
    gender: str
    class_name: str
    academic_year: str
    assigned_teacher: Optional[str] = None
    emergency_contact_name: str
    emergency_contact_phone: str
    emergency_contact_relationship: str
    medical_conditions: Optional[str] = None
    allergies: Optional[str] = None
    residential_address: Optional[str] = None
    correspondence_address: Optional[str] = None
    religion: Optional[str] = None
    caste: Optional[str] = None
    mother_phone: Optional[str] = None
    mother_email: Optional[str] = None
    father_phone: Optional[str] = None
    father_email: Optional[str] = None
    preferred_whatsapp: Optional[str] = None
    previous_school: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
