import uuid

import pytest
from werkzeug.security import generate_password_hash

from app.records.config.config import settings
from app.records.models.db_models import Role, User


@pytest.fixture
def login_user(fake_db) -> User:
    user = User(id=uuid.uuid4(), email="mary@school.test", role=Role.TEACHER, first_name="Mary", last_name="Jackson")
    fake_db.seed_user(user, generate_password_hash("correct horse"))
    return user


@pytest.mark.asyncio
class TestAuthAPI:

    async def test_login_returns_token_and_user(self, client, sessions, login_user):
        response = await client.post("/api/auth/login", json={"email": "mary@school.test", "password": "correct horse"})

        assert response.status_code == 200, response.text
        body = response.json()
        assert body["token"]["token_type"] == "bearer"
        assert body["user"]["role"] == "TEACHER"
        assert body["user"]["firstName"] == "Mary"
        assert sessions.ttls[login_user.id] == settings.TEACHER_SESSION_TTL_SECONDS

    async def test_token_from_login_grants_access(self, client, login_user):
        login = await client.post("/api/auth/login", json={"email": "MARY@school.test", "password": "correct horse"})
        token = login.json()["token"]["access_token"]

        response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["id"] == str(login_user.id)

    async def test_wrong_password_is_401(self, client, login_user):
        response = await client.post("/api/auth/login", json={"email": "mary@school.test", "password": "wrong"})
        assert response.status_code == 401

    async def test_unknown_email_is_401(self, client):
        response = await client.post("/api/auth/login", json={"email": "nobody@school.test", "password": "x"})
        assert response.status_code == 401

    async def test_disabled_account_is_403(self, client, fake_db, login_user):
        fake_db.users[login_user.id] = fake_db.users[login_user.id].model_copy(update={"is_active": False})
        response = await client.post("/api/auth/login", json={"email": "mary@school.test", "password": "correct horse"})
        assert response.status_code == 403

    async def test_oauth2_form_login(self, client, login_user):
        response = await client.post("/api/auth/token", data={"username": "mary@school.test", "password": "correct horse"})
        assert response.status_code == 200
        assert "access_token" in response.json()

    async def test_logout_revokes_token(self, client, login_user):
        login = await client.post("/api/auth/login", json={"email": "mary@school.test", "password": "correct horse"})
        headers = {"Authorization": f"Bearer {login.json()['token']['access_token']}"}

        assert (await client.post("/api/auth/logout", headers=headers)).status_code == 204
        assert (await client.get("/api/auth/me", headers=headers)).status_code == 403

    async def test_me_without_token_is_401(self, client):
        response = await client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["detail"] == "Authorization header missing"


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
