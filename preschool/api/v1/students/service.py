"""Students: parent-owned child records. Created only through admission submission."""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from preschool.auth.schemas import CurrentUser
from preschool.core.exceptions import ServiceError
from preschool.core.models import Admission, Student

from preschool.api.v1.admissions.schemas import AdmissionResponse, StudentWithAdmission
from .schemas import StudentResponse, StudentUpdate

logger = logging.getLogger(__name__)

# NOT NULL columns; a partial update may leave them out but never clear them
REQUIRED_FIELDS = frozenset({
    "full_name",
    "date_of_birth",
    "gender",
    "class_name",
    "academic_year",
    "emergency_contact_name",
    "emergency_contact_phone",
    "emergency_contact_relationship",
})


def to_student_response(s: Student) -> StudentResponse:
    return StudentResponse.model_validate(s)


def to_student_with_admission(s: Student, admission: Optional[Admission]) -> StudentWithAdmission:
    """Canonical student -> admission join. Pass the admission explicitly (may be None)."""
    return StudentWithAdmission(
        **to_student_response(s).model_dump(),
        admission=AdmissionResponse.model_validate(admission) if admission is not None else None,
    )


async def list_my_students(db: AsyncSession, current_user: CurrentUser) -> List[StudentWithAdmission]:
    result = await db.execute(
        select(Student)
        .options(selectinload(Student.admission))
        .where(Student.parent_id == current_user.id)
        .order_by(Student.created_at)
    )
    return [to_student_with_admission(s, s.admission) for s in result.scalars().all()]


async def list_all_students(db: AsyncSession) -> List[StudentWithAdmission]:
    result = await db.execute(
        select(Student)
        .options(selectinload(Student.admission))
        .order_by(Student.created_at.desc())
    )
    return [to_student_with_admission(s, s.admission) for s in result.scalars().all()]


async def get_student_for_caller(
    db: AsyncSession,
    current_user: CurrentUser,
    student_id: UUID,
) -> Student:
    student = await db.get(Student, student_id)
    if not student or (not current_user.is_admin and student.parent_id != current_user.id):
        raise ServiceError("Student not found", status.HTTP_404_NOT_FOUND)
    return student


async def update_student(
    db: AsyncSession,
    current_user: CurrentUser,
    student_id: UUID,
    payload: StudentUpdate,
) -> StudentResponse:
    """Partial update. Parents may edit their own children; admins may edit any."""
    student = await get_student_for_caller(db, current_user, student_id)
    data = payload.model_dump(exclude_unset=True)
    if "assigned_teacher" in data and not current_user.is_admin:
        raise ServiceError("Only admins can assign a teacher", status.HTTP_403_FORBIDDEN)
    cleared = sorted(f for f in REQUIRED_FIELDS if f in data and data[f] is None)
    if cleared:
        raise ServiceError(f"{', '.join(cleared)} cannot be empty", status.HTTP_400_BAD_REQUEST)
    for field, value in data.items():
        if value == "":
            value = None
        setattr(student, field, value)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to update student %s", student_id)
        raise ServiceError("Failed to update student") from e
    await db.refresh(student)
    logger.info("Student %s updated by %s", student.id, current_user.id)
    return to_student_response(student)
