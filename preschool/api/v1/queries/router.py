from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from preschool.auth.dependencies import get_current_user
from preschool.auth.rbac import require_admin
from preschool.auth.schemas import CurrentUser
from preschool.core.enums import QueryStatus
from preschool.core.exceptions import ServiceError
from preschool.db.session import get_db
from preschool.storage.backend import LocalStorage, get_storage

from .schemas import QueryCreate, QueryResponse, QueryUpdate, QueryWithParent
from . import service

router = APIRouter(prefix="/api/v1/queries", tags=["queries"])


@router.post("", response_model=QueryResponse, status_code=status.HTTP_201_CREATED)
async def submit_query(
    subject: str = Form(..., min_length=1, max_length=255),
    message: str = Form(..., min_length=1),
    attachment: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
    current_user: CurrentUser = Depends(get_current_user),
) -> QueryResponse:
    """Raise a help query, optionally with one attachment."""
    try:
        payload = QueryCreate(subject=subject, message=message)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False))
    try:
        return await service.submit_query(db, storage, current_user, payload, attachment)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/my", response_model=List[QueryResponse])
async def list_my_queries(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[QueryResponse]:
    return await service.list_my_queries(db, current_user)


@router.get("", response_model=List[QueryWithParent], dependencies=[Depends(require_admin)])
async def list_all_queries(
    status_filter: Optional[QueryStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
) -> List[QueryWithParent]:
    return await service.list_all_queries(db, status_filter)


@router.patch("/{query_id}", response_model=QueryWithParent)
async def update_query(
    query_id: UUID,
    payload: QueryUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> QueryWithParent:
    """Reply to or close a query."""
    try:
        return await service.update_query(db, current_user, query_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
