"""Test fixtures for the backend."""
import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-at-least-32-bytes!")

from mealplan_api import models  # noqa: E402
from mealplan_api.dependencies import get_db_session, get_mailer  # noqa: E402
from mealplan_api.main import app  # noqa: E402


class RecordingMailer:
    """Stands in for SMTP; keeps every recovery request."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    def send_account_recovery(self, to_email: str, username: str) -> None:
        self.sent.append((to_email, username))


@pytest_asyncio.fixture
async def session_factory(tmp_path: Path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """A fresh SQLite database per test."""

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test_backend.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession], mailer: RecordingMailer
) -> AsyncGenerator[AsyncClient, None]:
    """Provide an HTTP client bound to the per-test database."""

    async def _session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = _session
    app.dependency_overrides[get_mailer] = lambda: mailer
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as http:
        yield http
    app.dependency_overrides.clear()


class ApiHelper:
    """Shortcuts for the signup/login steps most tests start with."""

    def __init__(self, http: AsyncClient) -> None:
        self.http = http

    async def signup(self, username: str, email: str, password: str, **extra) -> dict:
        response = await self.http.post(
            "/signup",
            json={"username": username, "email": email, "password": password, **extra},
        )
        assert response.status_code == 201, response.text
        return response.json()

    async def login(self, username: str, password: str) -> str:
        response = await self.http.post(
            "/login", json={"username": username, "password": password}
        )
        assert response.status_code == 200, response.text
        return response.json()["token"]

    @staticmethod
    def bearer(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def api(client: AsyncClient) -> ApiHelper:
    return ApiHelper(client)
