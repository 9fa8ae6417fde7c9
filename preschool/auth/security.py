"""
Credential and token helpers.

Passwords are bcrypt hashes. Access tokens are short-lived JWTs carrying the profile id;
refresh and password reset tokens are opaque random strings kept server side (reset
tokens only as a SHA-256 digest).
"""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from uuid import UUID

import bcrypt
from jose import jwt

from preschool.core.config import settings


def hash_password(plain_password: str) -> str:
    return bcrypt.hashpw(plain_password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in the profile row
        return False


def create_access_token(
    profile_id: UUID,
    role: str,
    issued_at: datetime,
    expires_minutes: Optional[int] = None,
) -> str:
    """JWT for the Authorization header. The role claim is informational; requests reload the profile."""
    lifetime = timedelta(
        minutes=settings.access_token_expire_minutes if expires_minutes is None else expires_minutes
    )
    claims = {
        "sub": str(profile_id),
        "user_id": str(profile_id),
        "role": role,
        "iat": int(issued_at.timestamp()),
        "exp": issued_at + lifetime,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def _opaque_token(nbytes: int, lifetime: timedelta) -> Tuple[str, datetime]:
    return secrets.token_urlsafe(nbytes), datetime.now(timezone.utc) + lifetime


def create_refresh_token(expires_days: Optional[int] = None) -> Tuple[str, datetime]:
    days = settings.refresh_token_expire_days if expires_days is None else expires_days
    return _opaque_token(48, timedelta(days=days))


def create_reset_token(expires_minutes: Optional[int] = None) -> Tuple[str, str, datetime]:
    """Return (plain token for delivery, digest to store, expiry)."""
    minutes = settings.password_reset_expire_minutes if expires_minutes is None else expires_minutes
    token, expires_at = _opaque_token(32, timedelta(minutes=minutes))
    return token, hash_token(token), expires_at


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
