# tests/api/conftest.py
import uuid
from datetime import datetime, timedelta, timezone

import httpx
import pytest_asyncio

from app.records.api.auth import create_access_token
from app.records.api.dependencies import get_db_client, get_redis_client
from app.records.api.utilities.limiter import limiter
from app.records.config.config import settings
from app.records.main import app
from app.records.models.db_models import User
from app.records.models.redis_models import UserSessionRedis
from tests.fakes import FakeSessionStore

TEST_SECRET_KEY = "test-secret-key-with-enough-bytes-for-hs256"


@pytest_asyncio.fixture
async def sessions() -> FakeSessionStore:
    return FakeSessionStore()


@pytest_asyncio.fixture
async def client(fake_db, sessions, monkeypatch):
    """
    An httpx client talking to the real application in-process.

    The store and the session cache are swapped for in-memory fakes; routing,
    authentication, the authorization gate and error mapping are all real.
    """
    monkeypatch.setattr(settings, "SECRET_KEY", TEST_SECRET_KEY)
    monkeypatch.setattr(limiter, "enabled", False)
    app.dependency_overrides[get_db_client] = lambda: fake_db
    app.dependency_overrides[get_redis_client] = lambda: sessions

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as async_client:
        yield async_client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def auth_headers(sessions):
    """Returns a helper that opens a session for a user and gives back its bearer header."""
    async def _login(user: User) -> dict:
        now = datetime.now(timezone.utc)
        await sessions.save_user_session(
            UserSessionRedis(user_data=user, session_id=uuid.uuid4(), session_start_time=now, session_end_time=now + timedelta(hours=1)),
            ttl=3600
        )
        token = create_access_token({"sub": str(user.id), "role": user.role.value}, timedelta(hours=1))
        return {"Authorization": f"Bearer {token}"}

    return _login
