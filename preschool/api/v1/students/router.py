from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from preschool.auth.dependencies import get_current_user
from preschool.auth.rbac import require_admin
from preschool.auth.schemas import CurrentUser
from preschool.core.exceptions import ServiceError
from preschool.db.session import get_db

from preschool.api.v1.admissions.schemas import StudentWithAdmission
from .schemas import StudentResponse, StudentUpdate
from . import service

router = APIRouter(prefix="/api/v1/students", tags=["students"])


@router.get("/my", response_model=List[StudentWithAdmission])
async def list_my_students(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[StudentWithAdmission]:
    """Children registered by the current parent, each with its admission."""
    return await service.list_my_students(db, current_user)


@router.get("", response_model=List[StudentWithAdmission])
async def list_all_students(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> List[StudentWithAdmission]:
    return await service.list_all_students(db)


@router.patch("/{student_id}", response_model=StudentResponse)
async def update_student(
    student_id: UUID,
    payload: StudentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> StudentResponse:
    try:
        return await service.update_student(db, current_user, student_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
