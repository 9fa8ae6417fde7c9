import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import status
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from preschool.auth.models import PasswordResetToken, Profile, RefreshToken
from preschool.auth.schemas import (
    LoginRequest,
    LoginResponse,
    PasswordResetConfirm,
    RegisterRequest,
    UserInfo,
)
from preschool.auth.security import (
    create_access_token,
    create_refresh_token,
    create_reset_token,
    hash_password,
    hash_token,
    verify_password,
)
from preschool.core.enums import UserRole
from preschool.core.exceptions import ServiceError

logger = logging.getLogger(__name__)


def _as_aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone=True columns
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


async def _get_profile_by_email(db: AsyncSession, email: str) -> Optional[Profile]:
    result = await db.execute(
        select(Profile).where(func.lower(Profile.email) == func.lower(email))
    )
    return result.scalar_one_or_none()


async def _issue_tokens(db: AsyncSession, profile: Profile) -> LoginResponse:
    issued_at = datetime.now(timezone.utc)
    access_token = create_access_token(profile.id, profile.role, issued_at)
    refresh_token_str, refresh_expires_at = create_refresh_token()
    db.add(
        RefreshToken(
            profile_id=profile.id,
            token=refresh_token_str,
            expires_at=refresh_expires_at,
        )
    )
    try:
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.exception("Failed to persist refresh token for %s", profile.id)
        raise ServiceError(
            "Failed to persist authentication state",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        ) from e

    return LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token_str,
        user=UserInfo(
            id=profile.id,
            email=profile.email,
            full_name=profile.full_name,
            role=UserRole(profile.role),
        ),
        issued_at=issued_at,
    )


async def register_parent(db: AsyncSession, payload: RegisterRequest) -> UserInfo:
    """Sign up: create a parent profile. Admins are promoted later by an existing admin."""
    if await _get_profile_by_email(db, payload.email):
        raise ServiceError("Email is already in use", status.HTTP_409_CONFLICT)

    profile = Profile(
        email=payload.email.lower(),
        password_hash=hash_password(payload.password),
        full_name=payload.full_name.strip(),
        phone=payload.phone.strip() if payload.phone else None,
        role=UserRole.PARENT.value,
    )
    db.add(profile)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ServiceError("Email is already in use", status.HTTP_409_CONFLICT) from e
    await db.refresh(profile)
    logger.info("Registered parent profile %s", profile.id)
    return UserInfo(
        id=profile.id,
        email=profile.email,
        full_name=profile.full_name,
        role=UserRole(profile.role),
    )


async def login_user(db: AsyncSession, payload: LoginRequest) -> LoginResponse:
    profile = await _get_profile_by_email(db, payload.email)
    if not profile or not verify_password(payload.password, profile.password_hash):
        raise ServiceError("Invalid credentials", status.HTTP_401_UNAUTHORIZED)
    return await _issue_tokens(db, profile)


async def refresh_session(db: AsyncSession, refresh_token: str) -> LoginResponse:
    """Exchange a stored refresh token for a new token pair. The old token is revoked."""
    stored = (
        await db.execute(select(RefreshToken).where(RefreshToken.token == refresh_token))
    ).scalar_one_or_none()
    if not stored or _as_aware(stored.expires_at) <= datetime.now(timezone.utc):
        raise ServiceError("Invalid or expired refresh token", status.HTTP_401_UNAUTHORIZED)
    profile = await db.get(Profile, stored.profile_id)
    if not profile:
        raise ServiceError("Invalid or expired refresh token", status.HTTP_401_UNAUTHORIZED)
    await db.delete(stored)
    await db.flush()
    return await _issue_tokens(db, profile)


async def logout_user(db: AsyncSession, profile_id) -> None:
    """Sign out everywhere: drop all refresh tokens for the profile."""
    await db.execute(delete(RefreshToken).where(RefreshToken.profile_id == profile_id))
    await db.commit()


async def request_password_reset(db: AsyncSession, email: str) -> Optional[str]:
    """
    Create a one-time reset token for the profile with this email.
    Returns the plain token for delivery, or None when no profile matches; callers must
    respond identically in both cases.
    """
    profile = await _get_profile_by_email(db, email)
    if not profile:
        logger.info("Password reset requested for unknown email")
        return None
    token, token_digest, expires_at = create_reset_token()
    db.add(
        PasswordResetToken(
            profile_id=profile.id,
            token_hash=token_digest,
            expires_at=expires_at,
        )
    )
    await db.commit()
    logger.info("Password reset token issued for profile %s", profile.id)
    return token


async def reset_password(db: AsyncSession, payload: PasswordResetConfirm) -> None:
    stored = (
        await db.execute(
            select(PasswordResetToken).where(PasswordResetToken.token_hash == hash_token(payload.token))
        )
    ).scalar_one_or_none()
    now = datetime.now(timezone.utc)
    if not stored or stored.used_at is not None or _as_aware(stored.expires_at) <= now:
        raise ServiceError("Invalid or expired reset token", status.HTTP_400_BAD_REQUEST)
    profile = await db.get(Profile, stored.profile_id)
    if not profile:
        raise ServiceError("Invalid or expired reset token", status.HTTP_400_BAD_REQUEST)

    profile.password_hash = hash_password(payload.new_password)
    stored.used_at = now
    # Existing sessions end with a password change
    await db.execute(delete(RefreshToken).where(RefreshToken.profile_id == profile.id))
    await db.commit()
    logger.info("Password reset completed for profile %s", profile.id)
