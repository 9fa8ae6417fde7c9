"""
Payments: parents record fee payments and upload receipts; admins verify.
pending_upload -> under_verification -> approved | rejected.
"""

import io
import logging
import uuid
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from fastapi import UploadFile, status
from openpyxl import Workbook
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from preschool.auth.schemas import CurrentUser
from preschool.core import audit_service
from preschool.core.enums import PaymentStatus
from preschool.core.exceptions import ServiceError
from preschool.core.ledger import compute_ledger
from preschool.core.lifecycle import initial_payment_status, transition_payment
from preschool.core.models import Admission, Payment
from preschool.storage.backend import (
    BUCKET_RECEIPTS,
    LocalStorage,
    StorageError,
    file_extension,
    random_suffix,
    timestamp_ms,
)

from preschool.api.v1.admissions.service import get_admission_for_caller, to_admission_with_student
from .schemas import (
    PaymentCreate,
    PaymentResponse,
    PaymentSummaryResponse,
    PaymentVerify,
    PaymentWithAdmission,
)

logger = logging.getLogger(__name__)

REPORT_HEADERS = [
    "payment_id",
    "student_name",
    "class",
    "admission_status",
    "amount",
    "payment_date",
    "payment_type",
    "status",
    "verified_at",
    "verification_notes",
]


def to_payment_response(p: Payment) -> PaymentResponse:
    return PaymentResponse.model_validate(p)


def to_payment_with_admission(p: Payment, admission: Optional[Admission]) -> PaymentWithAdmission:
    """Canonical payment -> admission -> student join. The admission's student must be loaded."""
    return PaymentWithAdmission(
        **to_payment_response(p).model_dump(),
        admission=to_admission_with_student(admission, admission.student) if admission is not None else None,
    )


def _payment_query():
    return select(Payment).options(
        selectinload(Payment.admission).selectinload(Admission.student)
    )


async def _store_receipt(storage: LocalStorage, payment_id: UUID, file: UploadFile) -> Tuple[str, str]:
    """Upload a receipt under a fresh object name. Returns (object path, public URL)."""
    data = await file.read()
    if not data:
        raise ServiceError("Receipt file is empty", status.HTTP_400_BAD_REQUEST)
    path = f"{payment_id}_{timestamp_ms()}_{random_suffix()}.{file_extension(file.filename)}"
    try:
        return path, await storage.upload(BUCKET_RECEIPTS, path, data)
    except StorageError as e:
        logger.error("Receipt upload failed for payment %s: %s", payment_id, e)
        raise ServiceError("Receipt upload failed") from e


async def create_payment(
    db: AsyncSession,
    storage: LocalStorage,
    current_user: CurrentUser,
    payload: PaymentCreate,
    receipt: Optional[UploadFile] = None,
) -> PaymentResponse:
    """Record a payment against the caller's own admission. With a receipt it goes straight to verification."""
    admission = await db.get(Admission, payload.admission_id)
    if not admission or admission.parent_id != current_user.id:
        raise ServiceError("Admission not found", status.HTTP_404_NOT_FOUND)

    payment_id = uuid.uuid4()
    receipt_path, receipt_url = None, None
    if receipt is not None:
        receipt_path, receipt_url = await _store_receipt(storage, payment_id, receipt)
    payment_status = initial_payment_status(receipt_url is not None)

    payment = Payment(
        id=payment_id,
        admission_id=admission.id,
        parent_id=current_user.id,
        amount=payload.amount,
        payment_date=payload.payment_date,
        payment_type=payload.payment_type.value,
        receipt_url=receipt_url,
        status=payment_status.value,
    )
    db.add(payment)
    try:
        await db.flush()
        await audit_service.log_audit(
            db,
            "payment",
            payment.id,
            "payment_created",
            to_status=payment_status.value,
            performed_by=current_user.id,
        )
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to create payment for admission %s", admission.id)
        if receipt_path:
            await storage.discard(BUCKET_RECEIPTS, [receipt_path])
        raise ServiceError("Failed to record payment") from e
    await db.refresh(payment)
    logger.info(
        "Payment %s of %s recorded for admission %s (%s)",
        payment.id, payment.amount, admission.id, payment.status,
    )
    return to_payment_response(payment)


async def attach_receipt(
    db: AsyncSession,
    storage: LocalStorage,
    current_user: CurrentUser,
    payment_id: UUID,
    file: UploadFile,
) -> PaymentResponse:
    """Upload the receipt for a pending_upload payment and send it for verification."""
    payment = await db.get(Payment, payment_id)
    if not payment or payment.parent_id != current_user.id:
        raise ServiceError("Payment not found", status.HTTP_404_NOT_FOUND)
    from_status = payment.status
    new_status = transition_payment(from_status, PaymentStatus.UNDER_VERIFICATION)

    receipt_path, payment.receipt_url = await _store_receipt(storage, payment.id, file)
    payment.status = new_status.value
    await audit_service.log_audit(
        db,
        "payment",
        payment.id,
        "receipt_uploaded",
        from_status=from_status,
        to_status=new_status.value,
        performed_by=current_user.id,
    )
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to attach receipt to payment %s", payment_id)
        await storage.discard(BUCKET_RECEIPTS, [receipt_path])
        raise ServiceError("Failed to attach receipt") from e
    await db.refresh(payment)
    logger.info("Receipt attached to payment %s", payment.id)
    return to_payment_response(payment)


async def verify_payment(
    db: AsyncSession,
    current_user: CurrentUser,
    payment_id: UUID,
    payload: PaymentVerify,
) -> PaymentResponse:
    """Admin verification: under_verification -> approved | rejected, recording verifier and time."""
    payment = await db.get(Payment, payment_id)
    if not payment:
        raise ServiceError("Payment not found", status.HTTP_404_NOT_FOUND)
    from_status = payment.status
    new_status = transition_payment(from_status, payload.status)

    payment.status = new_status.value
    payment.verification_notes = payload.notes
    payment.verified_by = current_user.id
    payment.verified_at = datetime.utcnow()
    await audit_service.log_audit(
        db,
        "payment",
        payment.id,
        f"payment_{new_status.value}",
        from_status=from_status,
        to_status=new_status.value,
        performed_by=current_user.id,
        remarks=payload.notes,
    )
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to verify payment %s", payment_id)
        raise ServiceError("Failed to verify payment") from e
    await db.refresh(payment)
    logger.info("Payment %s %s -> %s by %s", payment.id, from_status, new_status.value, current_user.id)
    return to_payment_response(payment)


async def list_my_payments(db: AsyncSession, current_user: CurrentUser) -> List[PaymentWithAdmission]:
    result = await db.execute(
        _payment_query()
        .where(Payment.parent_id == current_user.id)
        .order_by(Payment.created_at.desc())
    )
    return [to_payment_with_admission(p, p.admission) for p in result.scalars().all()]


async def list_payments(
    db: AsyncSession,
    status_filter: Optional[PaymentStatus] = None,
    limit: Optional[int] = None,
) -> List[PaymentWithAdmission]:
    q = _payment_query()
    if status_filter:
        q = q.where(Payment.status == PaymentStatus(status_filter).value)
    q = q.order_by(Payment.created_at.desc())
    if limit:
        q = q.limit(limit)
    result = await db.execute(q)
    return [to_payment_with_admission(p, p.admission) for p in result.scalars().all()]


async def list_payments_for_admission(
    db: AsyncSession,
    current_user: CurrentUser,
    admission_id: UUID,
) -> List[PaymentResponse]:
    admission = await get_admission_for_caller(db, current_user, admission_id)
    result = await db.execute(
        select(Payment)
        .where(Payment.admission_id == admission.id)
        .order_by(Payment.payment_date, Payment.created_at)
    )
    return [to_payment_response(p) for p in result.scalars().all()]


async def get_payment_summary(
    db: AsyncSession,
    current_user: CurrentUser,
    admission_id: UUID,
) -> PaymentSummaryResponse:
    """Fee ledger for one admission: total fee, approved paid amount, remaining balance, percent."""
    admission = await get_admission_for_caller(db, current_user, admission_id)
    payments = (
        await db.execute(select(Payment).where(Payment.admission_id == admission.id))
    ).scalars().all()
    ledger = compute_ledger(admission.total_fee, payments)
    return PaymentSummaryResponse(
        admission_id=admission.id,
        total_fee=ledger.total_fee,
        paid_amount=ledger.paid_amount,
        remaining_balance=ledger.remaining_balance,
        payment_percent=ledger.payment_percent,
    )


async def build_payments_report(
    db: AsyncSession,
    status_filter: Optional[PaymentStatus] = None,
) -> bytes:
    """Excel export of payments (newest first) for the admin ledger."""
    payments = await list_payments(db, status_filter=status_filter)
    wb = Workbook()
    ws = wb.active
    ws.title = "Payments"
    ws.append(REPORT_HEADERS)
    for p in payments:
        student = p.admission.student if p.admission else None
        ws.append([
            str(p.id),
            student.full_name if student else "",
            student.class_name if student else "",
            p.admission.status.value if p.admission else "",
            float(p.amount),
            p.payment_date.isoformat(),
            p.payment_type.value,
            p.status.value,
            p.verified_at.isoformat() if p.verified_at else "",
            p.verification_notes or "",
        ])
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
