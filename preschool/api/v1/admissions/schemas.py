from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from preschool.api.v1.students.schemas import StudentResponse
from preschool.core.enums import AdmissionStatus
from preschool.core.schemas import FeeLedgerResponse


# ----- Admission submission (creates Student + Admission) -----

class AdmissionCreate(BaseModel):
    student_full_name: str = Field(..., min_length=1, max_length=255)
    date_of_birth: date
    gender: str = Field(..., min_length=1, max_length=20)
    class_name: str = Field(..., min_length=1, max_length=50, description="e.g. nursery, lkg, ukg")
    academic_year: str = Field(..., min_length=1, max_length=20, description="e.g. 2025-2026")
    medical_conditions: Optional[str] = None
    allergies: Optional[str] = None

    emergency_contact_name: str = Field(..., min_length=1, max_length=255)
    emergency_contact_phone: str = Field(..., min_length=1, max_length=50)
    emergency_contact_relationship: str = Field(..., min_length=1, max_length=100)

    residential_address: Optional[str] = None
    correspondence_address: Optional[str] = None
    religion: Optional[str] = Field(None, max_length=100)
    caste: Optional[str] = Field(None, max_length=100)
    mother_phone: Optional[str] = Field(None, max_length=50)
    mother_email: Optional[EmailStr] = None
    father_phone: Optional[str] = Field(None, max_length=50)
    father_email: Optional[EmailStr] = None
    preferred_whatsapp: Optional[str] = Field(None, max_length=50)
    previous_school: Optional[str] = Field(None, max_length=255)

    total_fee: Optional[Decimal] = Field(None, ge=0, description="Omit or 0 to use the class fee table")
    uploaded_files: Dict[str, str] = Field(
        default_factory=dict,
        description="Document type -> storage path returned by POST /admissions/documents",
    )

    class Config:
        str_strip_whitespace = True


class AdmissionStatusUpdate(BaseModel):
    """Admin review decision. Only submitted admissions can be decided."""

    status: AdmissionStatus = Field(..., description="approved or rejected")
    notes: Optional[str] = Field(None, max_length=2000)


class AdmissionUpdate(BaseModel):
    """Admin edit of fee and notes."""

    total_fee: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=2000)


class AdmissionResponse(BaseModel):
    id: UUID
    student_id: UUID
    parent_id: UUID
    admission_date: datetime
    status: AdmissionStatus
    total_fee: Decimal
    uploaded_files: Dict[str, str] = Field(default_factory=dict)
    notes: Optional[str] = None
    reviewed_by: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AdmissionWithStudent(AdmissionResponse):
    student: Optional[StudentResponse] = None


class StudentWithAdmission(StudentResponse):
    admission: Optional[AdmissionResponse] = None


class AdmissionDetail(AdmissionWithStudent):
    ledger: FeeLedgerResponse


class AdmissionCreateResponse(BaseModel):
    student: StudentResponse
    admission: AdmissionResponse


# ----- Documents -----

class DocumentUploadResponse(BaseModel):
    doc_type: str
    path: str


class DocumentLink(BaseModel):
    doc_type: str
    url: str
    file_type: str  # pdf | image | other


class DocumentLinksResponse(BaseModel):
    admission_id: UUID
    documents: List[DocumentLink]
