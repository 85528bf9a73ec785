import pytest

from jobboard.infra.redis import RedisProxy


@pytest.mark.asyncio
async def test_liveness(api_client) -> None:
    resp = await api_client.get("/health/live")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_readiness_without_redis(api_client) -> None:
    resp = await api_client.get("/health/ready")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "checks": {}}


@pytest.mark.asyncio
async def test_readiness_pings_redis(api_client, services, fake_redis) -> None:
    services.redis = RedisProxy(fake_redis)
    resp = await api_client.get("/health/ready")
    assert resp.status_code == 200
    assert resp.json()["checks"]["redis"]["ok"] is True


@pytest.mark.asyncio
async def test_metrics_expose_moderation_counters(api_client) -> None:
    await api_client.post("/api/posts", json={"content": "connard"}, headers={"X-User-Id": "user-1"})
    resp = await api_client.get("/metrics")
    assert resp.status_code == 200
    text = resp.text
    assert "jobboard_moderation_checks_total" in text
    assert 'jobboard_moderation_violations_total{gate="server",reason="banned_terms"}' in text
