import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from typing import AsyncGenerator, Dict

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import preschool.core.models  # noqa: F401
from preschool.core.config import settings
from preschool.db.session import Base, get_db
from preschool.main import app
from preschool.scripts.set_admin import set_admin
from preschool.storage.backend import LocalStorage, get_storage


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
PASSWORD = "StrongPass123"


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test; the same session backs the FastAPI dependency."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture()
def storage(tmp_path) -> LocalStorage:
    backend = LocalStorage(
        root=str(tmp_path / "storage"),
        base_url=settings.storage_base_url,
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )
    app.dependency_overrides[get_storage] = lambda: backend
    yield backend
    app.dependency_overrides.pop(get_storage, None)


@pytest.fixture()
async def client(db_session: AsyncSession, storage: LocalStorage) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def register_and_login(client: AsyncClient, email: str, full_name: str = "Test Parent") -> Dict[str, str]:
    """Sign up a parent and return bearer auth headers."""
    response = await client.post(
        "/api/v1/auth/register",
        json={
            "email": email,
            "password": PASSWORD,
            "confirm_password": PASSWORD,
            "full_name": full_name,
        },
    )
    assert response.status_code == 201, response.text
    login = await client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    assert login.status_code == 200, login.text
    return {"Authorization": f"Bearer {login.json()['access_token']}"}


@pytest.fixture()
async def parent_headers(client: AsyncClient) -> Dict[str, str]:
    return await register_and_login(client, "parent@example.com", "Priya Parent")


@pytest.fixture()
async def other_parent_headers(client: AsyncClient) -> Dict[str, str]:
    return await register_and_login(client, "other.parent@example.com", "Omar Parent")


@pytest.fixture()
async def admin_headers(client: AsyncClient, db_session: AsyncSession) -> Dict[str, str]:
    headers = await register_and_login(client, "head@example.com", "Head Teacher")
    await set_admin(db_session, "head@example.com")
    return headers


def admission_payload(**overrides) -> Dict:
    payload = {
        "student_full_name": "Aarav Kumar",
        "date_of_birth": "2021-05-14",
        "gender": "male",
        "class_name": "nursery",
        "academic_year": "2025-2026",
        "emergency_contact_name": "Ravi Kumar",
        "emergency_contact_phone": "+919800000001",
        "emergency_contact_relationship": "father",
        "allergies": "peanuts",
    }
    payload.update(overrides)
    return payload


async def submit_admission(client: AsyncClient, headers: Dict[str, str], **overrides) -> Dict:
    response = await client.post("/api/v1/admissions", json=admission_payload(**overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def record_payment(
    client: AsyncClient,
    headers: Dict[str, str],
    admission_id: str,
    amount: str,
    with_receipt: bool = True,
) -> Dict:
    files = {"receipt": ("receipt.png", b"\x89PNG fake receipt", "image/png")} if with_receipt else None
    response = await client.post(
        "/api/v1/payments",
        data={
            "admission_id": admission_id,
            "amount": amount,
            "payment_date": "2025-06-01",
            "payment_type": "installment",
        },
        files=files,
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def fail_next_commit(monkeypatch, session: AsyncSession) -> None:
    """Make the next commit on the shared session raise, as a dropped connection would."""
    real_commit = session.commit
    calls = {"n": 0}

    async def flaky_commit() -> None:
        calls["n"] += 1
        if calls["n"] == 1:
            raise OperationalError("COMMIT", {}, Exception("database is locked"))
        await real_commit()

    monkeypatch.setattr(session, "commit", flaky_commit)


def stored_files(storage: LocalStorage, bucket: str) -> list:
    folder = storage.root / bucket
    if not folder.exists():
        return []
    return sorted(p for p in folder.rglob("*") if p.is_file())
