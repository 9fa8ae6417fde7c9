"""
Object storage for receipts, event photos, admission documents and query attachments.

Objects live on the local filesystem under STORAGE_ROOT/<bucket>/<path>. Public buckets
hand out plain URLs; the documents bucket is private and hands out expiring signed URLs.
"""

import logging
import secrets
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path, PurePosixPath
from typing import Iterable, Optional
from urllib.parse import quote

from jose import JWTError, jwt
from starlette.concurrency import run_in_threadpool

from preschool.core.config import settings

logger = logging.getLogger(__name__)

BUCKET_RECEIPTS = "receipts"
BUCKET_EVENTS = "events"
BUCKET_DOCUMENTS = "documents"
BUCKET_ATTACHMENTS = "attachments"

PUBLIC_BUCKETS = frozenset({BUCKET_RECEIPTS, BUCKET_EVENTS, BUCKET_ATTACHMENTS})
PRIVATE_BUCKETS = frozenset({BUCKET_DOCUMENTS})


class StorageError(Exception):
    """Upload or lookup failure in the object store."""


def file_extension(filename: Optional[str], default: str = "bin") -> str:
    name = (filename or "").strip()
    if "." not in name:
        return default
    ext = name.rsplit(".", 1)[-1].lower()
    return ext if ext.isalnum() and len(ext) <= 10 else default


def timestamp_ms() -> int:
    return int(time.time() * 1000)


def random_suffix() -> str:
    return secrets.token_hex(4)


class LocalStorage:
    def __init__(
        self,
        root: str,
        base_url: str,
        secret_key: str,
        algorithm: str = "HS256",
        signed_url_expire_seconds: int = 3600,
    ) -> None:
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.signed_url_expire_seconds = signed_url_expire_seconds

    def _check_bucket(self, bucket: str) -> None:
        if bucket not in PUBLIC_BUCKETS and bucket not in PRIVATE_BUCKETS:
            raise StorageError(f"Unknown bucket: {bucket}")

    def resolve(self, bucket: str, path: str) -> Path:
        """Filesystem location of an object. Rejects absolute paths and '..' segments."""
        self._check_bucket(bucket)
        rel = PurePosixPath(path)
        if not path or rel.is_absolute() or ".." in rel.parts:
            raise StorageError(f"Invalid object path: {path!r}")
        return self.root / bucket / Path(*rel.parts)

    def _write(self, target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        if target.exists():
            raise StorageError(f"Object already exists: {target.name}")
        target.write_bytes(data)

    async def upload(self, bucket: str, path: str, data: bytes) -> str:
        """
        Store bytes at bucket/path.
        Returns the public URL for public buckets and the object path for private ones
        (callers sign it later with get_public_or_signed_url).
        """
        target = self.resolve(bucket, path)
        try:
            await run_in_threadpool(self._write, target, data)
        except OSError as e:
            logger.error("Storage upload failed for %s/%s: %s", bucket, path, e)
            raise StorageError(f"Upload failed for {bucket}/{path}") from e
        logger.info("Stored object %s/%s (%d bytes)", bucket, path, len(data))
        if bucket in PRIVATE_BUCKETS:
            return path
        return self.public_url(bucket, path)

    async def delete(self, bucket: str, path: str) -> None:
        target = self.resolve(bucket, path)
        try:
            await run_in_threadpool(target.unlink, missing_ok=True)
        except OSError as e:
            raise StorageError(f"Delete failed for {bucket}/{path}") from e
        logger.info("Deleted object %s/%s", bucket, path)

    async def discard(self, bucket: str, paths: Iterable[str]) -> None:
        """Best-effort removal of objects whose database row was never committed."""
        for path in paths:
            try:
                await self.delete(bucket, path)
            except StorageError as e:
                logger.error("Orphaned object left in storage: %s/%s (%s)", bucket, path, e)

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}/{bucket}/{quote(path)}"

    def sign(self, bucket: str, path: str, expires_in: Optional[int] = None) -> str:
        if expires_in is None:
            expires_in = self.signed_url_expire_seconds
        expire = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
        return jwt.encode(
            {"bucket": bucket, "path": path, "exp": expire},
            self._secret_key,
            algorithm=self._algorithm,
        )

    def verify_signature(self, bucket: str, path: str, token: str) -> bool:
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except JWTError:
            return False
        return payload.get("bucket") == bucket and payload.get("path") == path

    def get_public_or_signed_url(self, bucket: str, path: str, expires_in: Optional[int] = None) -> str:
        """Plain URL for public buckets; signed, expiring URL for private buckets."""
        self._check_bucket(bucket)
        # Already a full URL (legacy rows)
        if path.startswith("http://") or path.startswith("https://"):
            return path
        url = self.public_url(bucket, path)
        if bucket in PRIVATE_BUCKETS:
            return f"{url}?token={self.sign(bucket, path, expires_in)}"
        return url


_storage: Optional[LocalStorage] = None


def get_storage() -> LocalStorage:
    """FastAPI dependency returning the process-wide storage backend."""
    global _storage
    if _storage is None:
        _storage = LocalStorage(
            root=settings.storage_root,
            base_url=settings.storage_base_url,
            secret_key=settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
            signed_url_expire_seconds=settings.signed_url_expire_seconds,
        )
    return _storage
