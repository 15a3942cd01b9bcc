"""Unit tests for RateLimitMiddleware with a mocked Redis client."""

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from src.bm_gateway.middleware.rate_limit import RateLimitMiddleware


def _make_app(redis: AsyncMock, limit: int) -> FastAPI:
    app = FastAPI()

    async def factory():
        return redis

    app.add_middleware(RateLimitMiddleware, redis_factory=factory, limit_per_minute=limit)

    @app.get("/ping")
    async def ping() -> dict[str, str]:
        return {"ok": "yes"}

    @app.post("/ping")
    async def post_ping() -> dict[str, str]:
        return {"ok": "yes"}

    return app


@pytest.fixture
def redis() -> AsyncMock:
    mock = AsyncMock()
    counts: dict[str, int] = {}

    async def incr(key: str) -> int:
        counts[key] = counts.get(key, 0) + 1
        return counts[key]

    mock.incr.side_effect = incr
    return mock


def _client(app: FastAPI) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


class TestRateLimit:
    async def test_reads_are_not_counted(self, redis: AsyncMock) -> None:
        app = _make_app(redis, limit=1)
        async with _client(app) as ac:
            for _ in range(3):
                resp = await ac.get("/ping")
                assert resp.status_code == 200
        redis.incr.assert_not_called()

    async def test_over_limit_returns_429(self, redis: AsyncMock) -> None:
        app = _make_app(redis, limit=2)
        headers = {"X-Wallet-Public-Key": "wallet-1"}
        async with _client(app) as ac:
            assert (await ac.post("/ping", headers=headers)).status_code == 200
            assert (await ac.post("/ping", headers=headers)).status_code == 200
            resp = await ac.post("/ping", headers=headers)

        assert resp.status_code == 429
        assert resp.json()["code"] == 9001
        assert 0 < int(resp.headers["Retry-After"]) <= 60

    async def test_window_expiry_set_once(self, redis: AsyncMock) -> None:
        app = _make_app(redis, limit=5)
        headers = {"X-Wallet-Public-Key": "wallet-1"}
        async with _client(app) as ac:
            await ac.post("/ping", headers=headers)
            await ac.post("/ping", headers=headers)

        redis.expire.assert_awaited_once()
        key = redis.incr.call_args[0][0]
        assert key.startswith("ratelimit:wallet:wallet-1:")

    async def test_wallets_counted_separately(self, redis: AsyncMock) -> None:
        app = _make_app(redis, limit=1)
        async with _client(app) as ac:
            first = await ac.post("/ping", headers={"X-Wallet-Public-Key": "wallet-1"})
            second = await ac.post("/ping", headers={"X-Wallet-Public-Key": "wallet-2"})

        assert first.status_code == 200
        assert second.status_code == 200

    async def test_falls_back_to_forwarded_ip(self, redis: AsyncMock) -> None:
        app = _make_app(redis, limit=5)
        async with _client(app) as ac:
            await ac.post("/ping", headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})

        key = redis.incr.call_args[0][0]
        assert key.startswith("ratelimit:ip:203.0.113.7:")

    async def test_redis_outage_lets_requests_through(
        self, redis: AsyncMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        redis.incr.side_effect = RedisConnectionError("connection refused")
        app = _make_app(redis, limit=1)

        with caplog.at_level("WARNING", logger="bm.request"):
            async with _client(app) as ac:
                first = await ac.post("/ping", headers={"X-Wallet-Public-Key": "wallet-1"})
                second = await ac.post("/ping", headers={"X-Wallet-Public-Key": "wallet-1"})

        assert first.status_code == 200
        assert second.status_code == 200
        assert "rate limit skipped" in caplog.text
