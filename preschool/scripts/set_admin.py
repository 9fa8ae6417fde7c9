"""
Create the first admin or promote an existing profile to admin.

  ADMIN_EMAIL=head@school.example ADMIN_PASSWORD=... python -m preschool.scripts.set_admin
  python -m preschool.scripts.set_admin --email teacher@school.example

An existing profile keeps its password unless --password (or ADMIN_PASSWORD) is given.
"""

import argparse
import asyncio
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from preschool.auth.models import Profile
from preschool.auth.security import hash_password
from preschool.core.config import settings
from preschool.core.enums import UserRole
from preschool.db.session import AsyncSessionLocal

DEFAULT_ADMIN_FULL_NAME = "School Admin"


async def set_admin(
    db: AsyncSession,
    email: str,
    password: Optional[str] = None,
    full_name: Optional[str] = None,
) -> Profile:
    email = email.strip().lower()
    result = await db.execute(select(Profile).where(Profile.email == email))
    profile = result.scalar_one_or_none()
    if profile is None:
        if not password:
            raise ValueError(f"No profile for {email}; a password is required to create one")
        profile = Profile(
            email=email,
            password_hash=hash_password(password),
            full_name=full_name or DEFAULT_ADMIN_FULL_NAME,
            role=UserRole.ADMIN.value,
        )
        db.add(profile)
        print("Created admin profile:", email)
    else:
        profile.role = UserRole.ADMIN.value
        if password:
            profile.password_hash = hash_password(password)
        if full_name:
            profile.full_name = full_name
        print("Promoted existing profile to admin:", email)
    await db.commit()
    await db.refresh(profile)
    return profile


def _parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create or promote an admin profile")
    parser.add_argument("--email", default=settings.admin_email)
    parser.add_argument("--password", default=settings.admin_password)
    parser.add_argument("--full-name", default=None)
    return parser.parse_args(argv)


async def main(argv: Optional[list] = None) -> None:
    args = _parse_args(argv)
    if not args.email:
        raise SystemExit("Set ADMIN_EMAIL or pass --email")
    async with AsyncSessionLocal() as db:
        try:
            await set_admin(db, args.email, args.password, args.full_name)
        except Exception as e:
            await db.rollback()
            print("Error:", e)
            raise


if __name__ == "__main__":
    asyncio.run(main())
