import pytest
from httpx import AsyncClient

from preschool.storage.backend import BUCKET_DOCUMENTS, BUCKET_EVENTS, LocalStorage, StorageError


async def test_public_object_served_without_token(client: AsyncClient, storage: LocalStorage) -> None:
    url = await storage.upload(BUCKET_EVENTS, "event_1_abcd.jpg", b"jpeg-bytes")
    assert url == "/api/v1/files/events/event_1_abcd.jpg"

    response = await client.get(url)
    assert response.status_code == 200
    assert response.content == b"jpeg-bytes"
    assert response.headers["content-type"] == "image/jpeg"


async def test_private_object_needs_valid_signature(client: AsyncClient, storage: LocalStorage) -> None:
    path = await storage.upload(BUCKET_DOCUMENTS, "user-1/photo_1.png", b"png")
    assert path == "user-1/photo_1.png"

    signed = storage.get_public_or_signed_url(BUCKET_DOCUMENTS, path)
    assert (await client.get(signed)).status_code == 200

    # A token for another object does not open this one
    other_token = storage.sign(BUCKET_DOCUMENTS, "user-2/photo_1.png")
    response = await client.get(f"/api/v1/files/documents/{path}", params={"token": other_token})
    assert response.status_code == 403

    expired = storage.sign(BUCKET_DOCUMENTS, path, expires_in=-10)
    response = await client.get(f"/api/v1/files/documents/{path}", params={"token": expired})
    assert response.status_code == 403


async def test_unknown_bucket_and_missing_object(client: AsyncClient, storage: LocalStorage) -> None:
    assert (await client.get("/api/v1/files/secrets/x.txt")).status_code == 404
    assert (await client.get("/api/v1/files/events/missing.jpg")).status_code == 404


async def test_storage_rejects_traversal_and_overwrite(storage: LocalStorage) -> None:
    with pytest.raises(StorageError):
        storage.resolve(BUCKET_EVENTS, "../outside.txt")
    with pytest.raises(StorageError):
        storage.resolve(BUCKET_EVENTS, "/etc/passwd")

    await storage.upload(BUCKET_EVENTS, "once.jpg", b"1")
    with pytest.raises(StorageError):
        await storage.upload(BUCKET_EVENTS, "once.jpg", b"2")


def test_full_urls_pass_through(storage: LocalStorage) -> None:
    legacy = "https://cdn.example.com/receipts/r.png"
    assert storage.get_public_or_signed_url("receipts", legacy) == legacy


async def test_discard_removes_objects_and_ignores_missing(storage: LocalStorage) -> None:
    await storage.upload(BUCKET_EVENTS, "keep.jpg", b"1")
    await storage.upload(BUCKET_EVENTS, "drop.jpg", b"2")

    await storage.discard(BUCKET_EVENTS, ["drop.jpg", "never-stored.jpg", "../escape.jpg"])

    assert (storage.root / BUCKET_EVENTS / "keep.jpg").exists()
    assert not (storage.root / BUCKET_EVENTS / "drop.jpg").exists()
    # The name is free again
    await storage.upload(BUCKET_EVENTS, "drop.jpg", b"3")
