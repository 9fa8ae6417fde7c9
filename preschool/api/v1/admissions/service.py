"""
Admissions: submission creates Student + Admission together; admins decide
submitted -> approved | rejected. Documents are stored privately and shared through
signed URLs.
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import UploadFile, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from preschool.auth.schemas import CurrentUser
from preschool.core import audit_service
from preschool.core.enums import AdmissionStatus
from preschool.core.exceptions import ServiceError
from preschool.core.ledger import compute_ledger, resolve_admission_fee
from preschool.core.lifecycle import transition_admission
from preschool.core.models import Admission, Payment, Student
from preschool.core.schemas import FeeLedgerResponse
from preschool.storage.backend import (
    BUCKET_DOCUMENTS,
    LocalStorage,
    StorageError,
    file_extension,
    timestamp_ms,
)

from preschool.api.v1.students.service import to_student_response
from .schemas import (
    AdmissionCreate,
    AdmissionCreateResponse,
    AdmissionDetail,
    AdmissionResponse,
    AdmissionStatusUpdate,
    AdmissionUpdate,
    AdmissionWithStudent,
    DocumentLink,
    DocumentLinksResponse,
    DocumentUploadResponse,
)

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp")


def to_admission_response(a: Admission) -> AdmissionResponse:
    return AdmissionResponse.model_validate(a)


def to_admission_with_student(a: Admission, student: Optional[Student]) -> AdmissionWithStudent:
    """Canonical admission -> student join. Pass the student explicitly (may be None)."""
    return AdmissionWithStudent(
        **to_admission_response(a).model_dump(),
        student=to_student_response(student) if student is not None else None,
    )


def _student_fields(payload: AdmissionCreate) -> dict:
    def clean(val: Optional[str]) -> Optional[str]:
        if val is None:
            return None
        val = str(val).strip()
        return val or None

    return {
        "full_name": payload.student_full_name.strip(),
        "date_of_birth": payload.date_of_birth,
        "gender": payload.gender.strip(),
        "class_name": payload.class_name.strip(),
        "academic_year": payload.academic_year.strip(),
        "assigned_teacher": None,
        "emergency_contact_name": payload.emergency_contact_name.strip(),
        "emergency_contact_phone": payload.emergency_contact_phone.strip(),
        "emergency_contact_relationship": payload.emergency_contact_relationship.strip(),
        "medical_conditions": clean(payload.medical_conditions),
        "allergies": clean(payload.allergies),
        "residential_address": clean(payload.residential_address),
        "correspondence_address": clean(payload.correspondence_address),
        "religion": clean(payload.religion),
        "caste": clean(payload.caste),
        "mother_phone": clean(payload.mother_phone),
        "mother_email": clean(payload.mother_email),
        "father_phone": clean(payload.father_phone),
        "father_email": clean(payload.father_email),
        "preferred_whatsapp": clean(payload.preferred_whatsapp),
        "previous_school": clean(payload.previous_school),
    }


async def create_admission(
    db: AsyncSession,
    current_user: CurrentUser,
    payload: AdmissionCreate,
) -> AdmissionCreateResponse:
    """Create the student and its admission in one transaction. Status starts at submitted."""
    # Documents must come from this parent's own upload folder
    prefix = f"{current_user.id}/"
    foreign = [k for k, path in payload.uploaded_files.items() if not path.startswith(prefix)]
    if foreign:
        raise ServiceError(
            f"Invalid document path for: {', '.join(sorted(foreign))}",
            status.HTTP_400_BAD_REQUEST,
        )

    total_fee = resolve_admission_fee(payload.class_name, payload.total_fee)
    try:
        student = Student(parent_id=current_user.id, **_student_fields(payload))
        db.add(student)
        await db.flush()

        admission = Admission(
            student_id=student.id,
            parent_id=current_user.id,
            admission_date=datetime.utcnow(),
            status=AdmissionStatus.SUBMITTED.value,
            total_fee=total_fee,
            uploaded_files=dict(payload.uploaded_files),
            notes=None,
        )
        db.add(admission)
        await db.flush()
        await audit_service.log_audit(
            db,
            "admission",
            admission.id,
            "admission_submitted",
            to_status=AdmissionStatus.SUBMITTED.value,
            performed_by=current_user.id,
        )
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to create admission for parent %s", current_user.id)
        raise ServiceError("Failed to submit admission") from e

    await db.refresh(student)
    await db.refresh(admission)
    logger.info(
        "Admission %s submitted for student %s (class=%s, fee=%s)",
        admission.id, student.id, student.class_name, total_fee,
    )
    return AdmissionCreateResponse(
        student=to_student_response(student),
        admission=to_admission_response(admission),
    )


def _admission_query():
    return select(Admission).options(selectinload(Admission.student))


async def list_my_admissions(db: AsyncSession, current_user: CurrentUser) -> List[AdmissionWithStudent]:
    result = await db.execute(
        _admission_query()
        .where(Admission.parent_id == current_user.id)
        .order_by(Admission.created_at.desc())
    )
    return [to_admission_with_student(a, a.student) for a in result.scalars().all()]


async def list_admissions(
    db: AsyncSession,
    status_filter: Optional[AdmissionStatus] = None,
    limit: Optional[int] = None,
) -> List[AdmissionWithStudent]:
    """All admissions, newest first, optionally filtered by status."""
    q = _admission_query()
    if status_filter:
        q = q.where(Admission.status == AdmissionStatus(status_filter).value)
    q = q.order_by(Admission.created_at.desc())
    if limit:
        q = q.limit(limit)
    result = await db.execute(q)
    return [to_admission_with_student(a, a.student) for a in result.scalars().all()]


async def get_admission_for_caller(
    db: AsyncSession,
    current_user: CurrentUser,
    admission_id: UUID,
) -> Admission:
    """Load an admission the caller may see: its parent or any admin."""
    admission = (
        await db.execute(_admission_query().where(Admission.id == admission_id))
    ).scalar_one_or_none()
    if not admission or (not current_user.is_admin and admission.parent_id != current_user.id):
        raise ServiceError("Admission not found", status.HTTP_404_NOT_FOUND)
    return admission


async def get_admission_detail(
    db: AsyncSession,
    current_user: CurrentUser,
    admission_id: UUID,
) -> AdmissionDetail:
    admission = await get_admission_for_caller(db, current_user, admission_id)
    payments = (
        await db.execute(select(Payment).where(Payment.admission_id == admission.id))
    ).scalars().all()
    ledger = compute_ledger(admission.total_fee, payments)
    return AdmissionDetail(
        **to_admission_with_student(admission, admission.student).model_dump(),
        ledger=FeeLedgerResponse.from_ledger(ledger),
    )


async def update_admission_status(
    db: AsyncSession,
    current_user: CurrentUser,
    admission_id: UUID,
    payload: AdmissionStatusUpdate,
) -> AdmissionResponse:
    """Admin decision: submitted -> approved | rejected. Terminal admissions are never reopened."""
    admission = await db.get(Admission, admission_id)
    if not admission:
        raise ServiceError("Admission not found", status.HTTP_404_NOT_FOUND)

    from_status = admission.status
    new_status = transition_admission(from_status, payload.status)
    admission.status = new_status.value
    admission.notes = payload.notes
    admission.reviewed_by = current_user.id
    admission.reviewed_at = datetime.utcnow()
    await audit_service.log_audit(
        db,
        "admission",
        admission.id,
        f"admission_{new_status.value}",
        from_status=from_status,
        to_status=new_status.value,
        performed_by=current_user.id,
        remarks=payload.notes,
    )
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to update status of admission %s", admission_id)
        raise ServiceError("Failed to update admission status") from e
    await db.refresh(admission)
    logger.info(
        "Admission %s %s -> %s by %s", admission.id, from_status, new_status.value, current_user.id
    )
    return to_admission_response(admission)


async def update_admission(
    db: AsyncSession,
    current_user: CurrentUser,
    admission_id: UUID,
    payload: AdmissionUpdate,
) -> AdmissionResponse:
    """Admin edit of total_fee and notes. Status is changed only through update_admission_status."""
    admission = await db.get(Admission, admission_id)
    if not admission:
        raise ServiceError("Admission not found", status.HTTP_404_NOT_FOUND)
    data = payload.model_dump(exclude_unset=True)
    if data.get("total_fee") is not None:
        admission.total_fee = data["total_fee"]
    if "notes" in data:
        admission.notes = data["notes"]
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to update admission %s", admission_id)
        raise ServiceError("Failed to update admission") from e
    await db.refresh(admission)
    logger.info("Admission %s edited by %s", admission.id, current_user.id)
    return to_admission_response(admission)


# ----- Documents -----

def _doc_file_type(path: str) -> str:
    lower = path.lower()
    if lower.endswith(".pdf"):
        return "pdf"
    if lower.endswith(IMAGE_EXTENSIONS):
        return "image"
    return "other"


async def upload_document(
    storage: LocalStorage,
    current_user: CurrentUser,
    doc_type: str,
    file: UploadFile,
) -> DocumentUploadResponse:
    """Store an admission document privately under <user_id>/<doc_type>_<ts>.<ext>."""
    key = doc_type.strip().lower().replace(" ", "_")
    if not key or not key.replace("_", "").isalnum():
        raise ServiceError("Invalid document type", status.HTTP_400_BAD_REQUEST)
    path = f"{current_user.id}/{key}_{timestamp_ms()}.{file_extension(file.filename)}"
    data = await file.read()
    if not data:
        raise ServiceError("Uploaded file is empty", status.HTTP_400_BAD_REQUEST)
    try:
        stored_path = await storage.upload(BUCKET_DOCUMENTS, path, data)
    except StorageError as e:
        logger.error("Document upload failed for %s: %s", current_user.id, e)
        raise ServiceError("Document upload failed") from e
    return DocumentUploadResponse(doc_type=key, path=stored_path)


async def get_document_links(
    db: AsyncSession,
    storage: LocalStorage,
    current_user: CurrentUser,
    admission_id: UUID,
) -> DocumentLinksResponse:
    admission = await get_admission_for_caller(db, current_user, admission_id)
    links = []
    for doc_type, path in sorted((admission.uploaded_files or {}).items()):
        if not isinstance(path, str) or not path:
            continue
        try:
            url = storage.get_public_or_signed_url(BUCKET_DOCUMENTS, path)
        except StorageError:
            logger.error("Could not sign document %s for admission %s", doc_type, admission.id)
            continue
        links.append(DocumentLink(doc_type=doc_type, url=url, file_type=_doc_file_type(path)))
    return DocumentLinksResponse(admission_id=admission.id, documents=links)
