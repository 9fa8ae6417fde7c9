from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from preschool.auth.dependencies import get_current_user
from preschool.auth.rbac import require_admin
from preschool.auth.schemas import CurrentUser
from preschool.core.enums import AdmissionStatus
from preschool.core.exceptions import ServiceError
from preschool.db.session import get_db
from preschool.storage.backend import LocalStorage, get_storage

from .schemas import (
    AdmissionCreate,
    AdmissionCreateResponse,
    AdmissionDetail,
    AdmissionResponse,
    AdmissionStatusUpdate,
    AdmissionUpdate,
    AdmissionWithStudent,
    DocumentLinksResponse,
    DocumentUploadResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/admissions", tags=["admissions"])


@router.post(
    "",
    response_model=AdmissionCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_admission(
    payload: AdmissionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> AdmissionCreateResponse:
    """Submit an admission application. Creates the student record and its admission (status submitted)."""
    try:
        return await service.create_admission(db, current_user, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/documents",
    response_model=DocumentUploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_admission_document(
    doc_type: str = Form(..., max_length=50, description="e.g. birth_certificate, photo, address_proof"),
    file: UploadFile = File(...),
    storage: LocalStorage = Depends(get_storage),
    current_user: CurrentUser = Depends(get_current_user),
) -> DocumentUploadResponse:
    """Upload a document before submitting; send the returned path in uploaded_files."""
    try:
        return await service.upload_document(storage, current_user, doc_type, file)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/my", response_model=List[AdmissionWithStudent])
async def list_my_admissions(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[AdmissionWithStudent]:
    return await service.list_my_admissions(db, current_user)


@router.get("/pending", response_model=List[AdmissionWithStudent])
async def list_pending_admissions(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> List[AdmissionWithStudent]:
    """Admissions awaiting review (status submitted)."""
    return await service.list_admissions(db, status_filter=AdmissionStatus.SUBMITTED)


@router.get("", response_model=List[AdmissionWithStudent])
async def list_admissions(
    status_filter: Optional[AdmissionStatus] = Query(None, alias="status", description="submitted, approved, rejected"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> List[AdmissionWithStudent]:
    return await service.list_admissions(db, status_filter=status_filter)


@router.get("/{admission_id}", response_model=AdmissionDetail)
async def get_admission(
    admission_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> AdmissionDetail:
    """Admission with its student and fee ledger. Visible to the owning parent and admins."""
    try:
        return await service.get_admission_detail(db, current_user, admission_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{admission_id}/documents", response_model=DocumentLinksResponse)
async def get_admission_documents(
    admission_id: UUID,
    db: AsyncSession = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
    current_user: CurrentUser = Depends(get_current_user),
) -> DocumentLinksResponse:
    """Signed, expiring links to the admission's uploaded documents."""
    try:
        return await service.get_document_links(db, storage, current_user, admission_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{admission_id}/status", response_model=AdmissionResponse)
async def update_admission_status(
    admission_id: UUID,
    payload: AdmissionStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> AdmissionResponse:
    """Approve or reject a submitted admission, with optional notes."""
    try:
        return await service.update_admission_status(db, current_user, admission_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{admission_id}", response_model=AdmissionResponse)
async def update_admission(
    admission_id: UUID,
    payload: AdmissionUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> AdmissionResponse:
    try:
        return await service.update_admission(db, current_user, admission_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
