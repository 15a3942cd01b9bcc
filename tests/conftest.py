"""Shared test fixtures.

The app is configured for the in-memory ledger with rate limiting off
before anything imports config.settings.
"""

import os

os.environ["LEDGER_BACKEND"] = "memory"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CUSTODIAL_BALANCES"] = "false"
os.environ["ADMIN_POLICY"] = "allowlist"

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.bm_admin.domain.policy import AllowListPolicy  # noqa: E402
from src.bm_ledger.infrastructure.memory import InMemoryLedgerStore, MemorySession  # noqa: E402
from src.bm_market.application.service import MarketLifecycleEngine  # noqa: E402
from src.bm_market.domain.models import MarketRules  # noqa: E402
from tests.helpers import ADMIN  # noqa: E402


@pytest.fixture
def store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def session() -> MemorySession:
    return MemorySession()


@pytest.fixture
def rules() -> MarketRules:
    return MarketRules()


@pytest.fixture
def engine(store: InMemoryLedgerStore, rules: MarketRules) -> MarketLifecycleEngine:
    return MarketLifecycleEngine(repo=store, policy=AllowListPolicy({ADMIN}), rules=rules)


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints on a fresh in-memory ledger."""
    from src.bm_ledger.infrastructure.backend import get_ledger_store
    from src.main import app

    get_ledger_store().reset()  # type: ignore[attr-defined]
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
