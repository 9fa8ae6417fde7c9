from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from preschool.auth.dependencies import get_current_user
from preschool.auth.rbac import require_admin
from preschool.auth.schemas import CurrentUser
from preschool.db.session import get_db

from .schemas import AdminDashboard, ParentDashboard
from . import service

router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])


@router.get("/parent", response_model=ParentDashboard)
async def parent_dashboard(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ParentDashboard:
    """Children, payments, upcoming events, top announcements and fee totals for the caller."""
    return await service.get_parent_dashboard(db, current_user)


@router.get("/admin", response_model=AdminDashboard, dependencies=[Depends(require_admin)])
async def admin_dashboard(db: AsyncSession = Depends(get_db)) -> AdminDashboard:
    return await service.get_admin_dashboard(db)
