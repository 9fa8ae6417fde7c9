import logging
from typing import List
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from preschool.auth.models import Profile
from preschool.auth.schemas import CurrentUser
from preschool.core.exceptions import ServiceError

from .schemas import ProfileResponse, ProfileUpdate, RoleUpdate

logger = logging.getLogger(__name__)


async def _get_profile(db: AsyncSession, profile_id: UUID) -> Profile:
    profile = await db.get(Profile, profile_id)
    if not profile:
        raise ServiceError("Profile not found", status.HTTP_404_NOT_FOUND)
    return profile


async def get_my_profile(db: AsyncSession, current_user: CurrentUser) -> ProfileResponse:
    return ProfileResponse.model_validate(await _get_profile(db, current_user.id))


async def update_my_profile(
    db: AsyncSession,
    current_user: CurrentUser,
    payload: ProfileUpdate,
) -> ProfileResponse:
    """Self-service edit of full_name and phone. Email and role are not editable here."""
    profile = await _get_profile(db, current_user.id)
    data = payload.model_dump(exclude_unset=True)
    if "full_name" in data and data["full_name"] is not None:
        profile.full_name = data["full_name"]
    if "phone" in data:
        profile.phone = data["phone"] or None
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to update profile %s", current_user.id)
        raise ServiceError("Failed to update profile") from e
    await db.refresh(profile)
    return ProfileResponse.model_validate(profile)


async def list_profiles(db: AsyncSession) -> List[ProfileResponse]:
    result = await db.execute(select(Profile).order_by(Profile.created_at.desc()))
    return [ProfileResponse.model_validate(p) for p in result.scalars().all()]


async def change_role(
    db: AsyncSession,
    current_user: CurrentUser,
    profile_id: UUID,
    payload: RoleUpdate,
) -> ProfileResponse:
    if profile_id == current_user.id:
        raise ServiceError("Admins cannot change their own role", status.HTTP_400_BAD_REQUEST)
    profile = await _get_profile(db, profile_id)
    previous = profile.role
    profile.role = payload.role.value
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to change role of profile %s", profile_id)
        raise ServiceError("Failed to change role") from e
    await db.refresh(profile)
    logger.info("Profile %s role %s -> %s by %s", profile.id, previous, profile.role, current_user.id)
    return ProfileResponse.model_validate(profile)


async def delete_profile(db: AsyncSession, current_user: CurrentUser, profile_id: UUID) -> None:
    """Remove a profile. Students, admissions, payments and queries go with it (FK cascade)."""
    if profile_id == current_user.id:
        raise ServiceError("Admins cannot delete their own profile", status.HTTP_400_BAD_REQUEST)
    profile = await _get_profile(db, profile_id)
    await db.delete(profile)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to delete profile %s", profile_id)
        raise ServiceError("Failed to delete profile") from e
    logger.warning("Profile %s deleted by %s", profile_id, current_user.id)
