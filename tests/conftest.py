import os
import tempfile

_tmpdir = tempfile.mkdtemp(prefix="smartfit-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_tmpdir, 'smartfit.db')}"
os.environ["RESET_DATABASE"] = "true"
os.environ["SEED_DATA"] = "true"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ALLOWED_EMAIL_DOMAIN"] = "nyu.edu"
os.environ["AUTH_RATE_LIMIT"] = "1000"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fakeredis import FakeServer, aioredis
from fastapi.testclient import TestClient

from smartfit import main
from smartfit.main import app
from smartfit.redis import get_redis

# ids of the seeded reference data
PALLADIUM_ID = 1
CARDIO_ZONE_ID = 1
WEIGHT_ROOM_ID = 2
PAULSON_ID = 2


@pytest.fixture
def redis_server():
    return FakeServer()


@pytest.fixture
def client(monkeypatch, redis_server):
    async def fake_get_redis():
        redis_client = aioredis.FakeRedis(server=redis_server, decode_responses=True)
        try:
            yield redis_client
        finally:
            await redis_client.aclose()

    async def fake_redis_session():
        return aioredis.FakeRedis(server=redis_server, decode_responses=True)

    app.dependency_overrides[get_redis] = fake_get_redis
    monkeypatch.setattr(main, "get_redis_session", fake_redis_session)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register(client):
    """Register a user and return ``(user, token)``."""

    def _register(name="Test User", email="testuser@nyu.edu", password="password123"):
        res = client.post(
            "/api/auth/register", json={"name": name, "email": email, "password": password}
        )
        assert res.status_code == 201, res.text
        body = res.json()
        return body["data"], body["token"]

    return _register


@pytest.fixture
def alice(register):
    return register("Alice", "alice@nyu.edu")


@pytest.fixture
def bob(register):
    return register("Bob", "bob@nyu.edu")
