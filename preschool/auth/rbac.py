from fastapi import Depends, HTTPException, status

from preschool.auth.dependencies import get_current_user
from preschool.auth.schemas import CurrentUser
from preschool.core.enums import UserRole


async def require_admin(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Require the admin role. Used on review, verification and content management endpoints."""
    if current_user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can perform this action",
        )
    return current_user
