from datetime import date, timedelta

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from preschool.api.v1.events import service as event_service
from preschool.core.models import Event
from preschool.storage.backend import BUCKET_EVENTS

from conftest import fail_next_commit, stored_files


async def _create_event(client: AsyncClient, headers, title: str, event_date: date, photos=None):
    files = [("photos", (name, content, "image/jpeg")) for name, content in (photos or [])]
    response = await client.post(
        "/api/v1/events",
        data={
            "title": title,
            "description": f"{title} description",
            "event_date": event_date.isoformat(),
        },
        files=files or None,
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


async def test_admin_creates_event_with_photos(client: AsyncClient, admin_headers, parent_headers) -> None:
    event = await _create_event(
        client,
        admin_headers,
        "Sports Day",
        date.today() + timedelta(days=10),
        photos=[("a.jpg", b"photo-a"), ("b.jpg", b"photo-b")],
    )
    assert event["event_type"] == "upcoming"
    assert len(event["photos"]) == 2
    assert all(url.startswith("/api/v1/files/events/event_") for url in event["photos"])

    served = await client.get(event["photos"][0])
    assert served.status_code == 200

    forbidden = await client.post(
        "/api/v1/events",
        data={"title": "Nope", "description": "x", "event_date": date.today().isoformat()},
        headers=parent_headers,
    )
    assert forbidden.status_code == 403


async def test_upcoming_and_past_are_classified_by_date(client: AsyncClient, admin_headers, parent_headers) -> None:
    today = date.today()
    for offset in (-30, -1, 0, 3, 7):
        await _create_event(client, admin_headers, f"Event {offset}", today + timedelta(days=offset))

    upcoming = (await client.get("/api/v1/events/upcoming", headers=parent_headers)).json()
    assert [e["title"] for e in upcoming] == ["Event 0", "Event 3", "Event 7"]

    past = (await client.get("/api/v1/events/past", headers=parent_headers)).json()
    assert [e["title"] for e in past] == ["Event -1", "Event -30"]

    everything = (await client.get("/api/v1/events", headers=parent_headers)).json()
    assert [e["title"] for e in everything] == ["Event -30", "Event -1", "Event 0", "Event 3", "Event 7"]


async def test_upcoming_is_limited_to_five(db_session: AsyncSession) -> None:
    start = date(2030, 1, 1)
    for i in range(7):
        db_session.add(Event(title=f"E{i}", description="d", event_date=start + timedelta(days=i), event_type="upcoming"))
    await db_session.commit()

    upcoming = await event_service.list_upcoming_events(db_session, today=date(2030, 1, 2))
    assert [e.title for e in upcoming] == ["E1", "E2", "E3", "E4", "E5"]


async def test_update_add_photos_and_delete_event(client: AsyncClient, admin_headers) -> None:
    event = await _create_event(client, admin_headers, "Art Fair", date.today() + timedelta(days=5))

    updated = await client.patch(
        f"/api/v1/events/{event['id']}",
        json={"title": "Art & Craft Fair", "event_type": "past"},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["title"] == "Art & Craft Fair"
    assert updated.json()["event_type"] == "past"

    with_photos = await client.post(
        f"/api/v1/events/{event['id']}/photos",
        files=[("photos", ("c.png", b"photo-c", "image/png"))],
        headers=admin_headers,
    )
    assert with_photos.status_code == 200
    assert len(with_photos.json()["photos"]) == 1

    deleted = await client.delete(f"/api/v1/events/{event['id']}", headers=admin_headers)
    assert deleted.status_code == 204
    missing = await client.patch(f"/api/v1/events/{event['id']}", json={"title": "x"}, headers=admin_headers)
    assert missing.status_code == 404


async def test_blank_title_is_rejected_and_text_is_trimmed(client: AsyncClient, admin_headers) -> None:
    blank = await client.post(
        "/api/v1/events",
        data={"title": "   ", "description": "Bring a hat", "event_date": date.today().isoformat()},
        headers=admin_headers,
    )
    assert blank.status_code == 422

    event = await _create_event(client, admin_headers, "  Picnic  ", date.today())
    assert event["title"] == "Picnic"

    patched = await client.patch(
        f"/api/v1/events/{event['id']}", json={"description": " \t "}, headers=admin_headers
    )
    assert patched.status_code == 422


async def test_failed_event_insert_removes_photos(
    client: AsyncClient, db_session: AsyncSession, storage, admin_headers, monkeypatch
) -> None:
    fail_next_commit(monkeypatch, db_session)
    response = await client.post(
        "/api/v1/events",
        data={"title": "Art Fair", "description": "Paintings", "event_date": date.today().isoformat()},
        files=[("photos", ("a.jpg", b"photo-a", "image/jpeg")), ("photos", ("b.jpg", b"photo-b", "image/jpeg"))],
        headers=admin_headers,
    )
    assert response.status_code == 500
    assert stored_files(storage, BUCKET_EVENTS) == []
    assert (await client.get("/api/v1/events", headers=admin_headers)).json() == []
