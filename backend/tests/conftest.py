import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from jobboard.main import create_app
from jobboard.moderation.domain.container import ModerationServices, build_services
from jobboard.settings import Settings

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now += timedelta(**delta)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def fake_redis():
    client = FakeRedis(decode_responses=True)
    try:
        yield client
    finally:
        await client.flushall()
        await client.aclose()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        environment="test",
        moderation_ledger_backend="memory",
        moderation_config_path=None,
        moderation_warning_threshold=None,
        moderation_suspension_seconds=None,
        moderation_reset_horizon_seconds=None,
        moderation_spam_gate_enabled=True,
        moderation_write_methods="POST,PUT",
    )


@pytest.fixture
def services(test_settings: Settings, clock: FakeClock) -> ModerationServices:
    return build_services(test_settings, clock=clock)


@pytest.fixture
def app(test_settings: Settings, services: ModerationServices) -> FastAPI:
    application = create_app(test_settings, services)

    @application.post("/api/posts")
    async def create_post(payload: dict) -> dict:
        return {"success": True, "post": payload}

    @application.put("/api/posts/{post_id}")
    async def update_post(post_id: str, payload: dict) -> dict:
        return {"success": True, "id": post_id, "post": payload}

    @application.post("/api/bad-request")
    async def bad_request(payload: dict) -> dict:
        from fastapi import HTTPException

        raise HTTPException(status_code=400, detail="other_error")

    return application


@pytest_asyncio.fixture
async def api_client(app: FastAPI):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
