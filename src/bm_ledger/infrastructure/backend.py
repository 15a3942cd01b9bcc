"""Ledger backend selection — one store instance per process.

LEDGER_BACKEND=postgres  → LedgerRepository over the shared AsyncSession pool
LEDGER_BACKEND=memory    → InMemoryLedgerStore with per-request MemorySession
"""

from collections.abc import AsyncGenerator
from typing import Any

from config.settings import settings
from src.bm_common.database import async_session_factory
from src.bm_ledger.domain.repository import LedgerStoreProtocol
from src.bm_ledger.infrastructure.memory import InMemoryLedgerStore, MemorySession
from src.bm_ledger.infrastructure.persistence import LedgerRepository

_store: LedgerStoreProtocol | None = None


def uses_memory_backend() -> bool:
    return settings.LEDGER_BACKEND == "memory"


def get_ledger_store() -> LedgerStoreProtocol:
    global _store  # noqa: PLW0603
    if _store is None:
        _store = InMemoryLedgerStore() if uses_memory_backend() else LedgerRepository()
    return _store


async def get_ledger_session() -> AsyncGenerator[Any, None]:
    """FastAPI dependency: yields a unit of work for the configured backend.

    Anything not committed by the handler is discarded on exit.
    """
    if uses_memory_backend():
        session = MemorySession()
        try:
            yield session
        finally:
            await session.rollback()
    else:
        async with async_session_factory() as db:
            yield db
