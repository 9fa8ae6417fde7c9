"""Payments schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from preschool.api.v1.admissions.schemas import AdmissionWithStudent
from preschool.core.enums import PaymentStatus, PaymentType
from preschool.core.schemas import FeeLedgerResponse


class PaymentCreate(BaseModel):
    admission_id: UUID
    amount: Decimal = Field(..., gt=0)
    payment_date: date
    payment_type: PaymentType = PaymentType.INSTALLMENT


class PaymentVerify(BaseModel):
    """Admin verification result: approved or rejected."""

    status: PaymentStatus = Field(..., description="approved or rejected")
    notes: Optional[str] = Field(None, max_length=2000)


class PaymentResponse(BaseModel):
    id: UUID
    admission_id: UUID
    parent_id: UUID
    amount: Decimal
    payment_date: date
    payment_type: PaymentType
    receipt_url: Optional[str] = None
    status: PaymentStatus
    verification_notes: Optional[str] = None
    verified_by: Optional[UUID] = None
    verified_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PaymentWithAdmission(PaymentResponse):
    admission: Optional[AdmissionWithStudent] = None


class PaymentSummaryResponse(FeeLedgerResponse):
    admission_id: UUID
