"""Test fixtures — a fresh in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. The required settings are put in the environment *before* taskmaster is
   imported, because Settings() refuses to load without them.
2. Each test gets its own aiosqlite in-memory database (StaticPool keeps the
   single connection alive), with the schema created from the ORM models.
3. get_db is overridden to hand out sessions bound to that database, and
   get_notifier to a RecordingNotifier so tests can see what would be emailed.

Auth is NOT mocked: tests register, log in and send real bearer tokens,
so every request exercises the real get_current_user gate.
"""

import os

os.environ.setdefault("TASKMASTER_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("TASKMASTER_JWT_SECRET", "test-secret-do-not-use-in-production")
os.environ["TASKMASTER_SMTP_HOST"] = ""

import uuid  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from taskmaster.auth import password as password_module  # noqa: E402
from taskmaster.db.engine import get_db  # noqa: E402
from taskmaster.db.models import Base  # noqa: E402
from taskmaster.main import app  # noqa: E402
from taskmaster.services.notifications import (  # noqa: E402
    Notifier,
    TaskCreatedNotice,
    get_notifier,
)


class RecordingNotifier(Notifier):
    """Collects notices instead of sending mail."""

    def __init__(self):
        self.sent: list[TaskCreatedNotice] = []

    async def _send_task_created(self, notice: TaskCreatedNotice) -> None:
        self.sent.append(notice)


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    """bcrypt at 12 rounds makes every register/login slow; 4 is plenty here."""
    monkeypatch.setattr(password_module, "BCRYPT_ROUNDS", 4)


@pytest_asyncio.fixture()
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture()
def session_factory(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """Direct session for service-level tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest_asyncio.fixture()
async def client(session_factory, notifier):
    """HTTP client against the real app with DB and notifier overridden."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture()
def signup(client):
    """Factory: register + login a fresh account.

    Returns (auth_headers, user_json).
    """

    async def _signup(username=None, password="secret1", email=None):
        username = username or f"user{uuid.uuid4().hex[:8]}"
        email = email or f"{username}@example.com"
        r = await client.post(
            "/api/auth/register",
            json={"username": username, "email": email, "password": password},
        )
        assert r.status_code == 201, r.text
        r = await client.post(
            "/api/auth/login",
            json={"email": email, "password": password},
        )
        assert r.status_code == 200, r.text
        data = r.json()
        return {"Authorization": f"Bearer {data['token']}"}, data["user"]

    return _signup
