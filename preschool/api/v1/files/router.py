"""Serves stored objects. Private buckets require a valid signed token."""

import logging
import mimetypes
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import FileResponse

from preschool.storage.backend import PRIVATE_BUCKETS, LocalStorage, StorageError, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/files", tags=["files"])


@router.get("/{bucket}/{object_path:path}")
async def get_file(
    bucket: str,
    object_path: str,
    token: Optional[str] = Query(None),
    storage: LocalStorage = Depends(get_storage),
) -> FileResponse:
    not_found = HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    try:
        target = storage.resolve(bucket, object_path)
    except StorageError:
        raise not_found

    if bucket in PRIVATE_BUCKETS:
        if not token or not storage.verify_signature(bucket, object_path, token):
            logger.warning("Rejected unsigned access to %s/%s", bucket, object_path)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid or expired signature")

    if not target.is_file():
        raise not_found
    media_type, _ = mimetypes.guess_type(target.name)
    return FileResponse(target, media_type=media_type or "application/octet-stream")
