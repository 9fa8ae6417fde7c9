"""Payments router: record, receipt upload, verification, ledger summary, export."""

from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from preschool.auth.dependencies import get_current_user
from preschool.auth.rbac import require_admin
from preschool.auth.schemas import CurrentUser
from preschool.core.enums import PaymentStatus, PaymentType
from preschool.core.exceptions import ServiceError
from preschool.db.session import get_db
from preschool.storage.backend import LocalStorage, get_storage

from .schemas import (
    PaymentCreate,
    PaymentResponse,
    PaymentSummaryResponse,
    PaymentVerify,
    PaymentWithAdmission,
)
from . import service

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


@router.post(
    "",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_payment(
    admission_id: UUID = Form(...),
    amount: Decimal = Form(..., gt=0),
    payment_date: date = Form(...),
    payment_type: PaymentType = Form(PaymentType.INSTALLMENT),
    receipt: Optional[UploadFile] = File(None, description="Receipt image/PDF; without it the payment waits in pending_upload"),
    db: AsyncSession = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
    current_user: CurrentUser = Depends(get_current_user),
) -> PaymentResponse:
    payload = PaymentCreate(
        admission_id=admission_id,
        amount=amount,
        payment_date=payment_date,
        payment_type=payment_type,
    )
    try:
        return await service.create_payment(db, storage, current_user, payload, receipt)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/my", response_model=List[PaymentWithAdmission])
async def list_my_payments(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[PaymentWithAdmission]:
    return await service.list_my_payments(db, current_user)


@router.get("/pending", response_model=List[PaymentWithAdmission])
async def list_pending_payments(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> List[PaymentWithAdmission]:
    """Payments with a receipt awaiting verification."""
    return await service.list_payments(db, status_filter=PaymentStatus.UNDER_VERIFICATION)


@router.get("/report", dependencies=[Depends(require_admin)])
async def download_payments_report(
    status_filter: Optional[PaymentStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Excel export of payments with student and admission details."""
    content = await service.build_payments_report(db, status_filter=status_filter)
    return Response(
        content=content,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=payments_report.xlsx"},
    )


@router.get("", response_model=List[PaymentWithAdmission])
async def list_payments(
    status_filter: Optional[PaymentStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> List[PaymentWithAdmission]:
    return await service.list_payments(db, status_filter=status_filter)


@router.get("/admission/{admission_id}", response_model=List[PaymentResponse])
async def list_payments_for_admission(
    admission_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[PaymentResponse]:
    try:
        return await service.list_payments_for_admission(db, current_user, admission_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/admission/{admission_id}/summary", response_model=PaymentSummaryResponse)
async def get_payment_summary(
    admission_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> PaymentSummaryResponse:
    try:
        return await service.get_payment_summary(db, current_user, admission_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{payment_id}/receipt", response_model=PaymentResponse)
async def upload_receipt(
    payment_id: UUID,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
    current_user: CurrentUser = Depends(get_current_user),
) -> PaymentResponse:
    try:
        return await service.attach_receipt(db, storage, current_user, payment_id, file)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{payment_id}/verify", response_model=PaymentResponse)
async def verify_payment(
    payment_id: UUID,
    payload: PaymentVerify,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> PaymentResponse:
    """Approve or reject a payment under verification."""
    try:
        return await service.verify_payment(db, current_user, payment_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
