# src/bm_admin/application/service.py
"""Admin application service.

Settlement is delegated to the lifecycle engine, which re-checks the access
policy itself; the read views here assume the router already required admin.
"""

from typing import Any

from src.bm_common.enums import MarketStatus
from src.bm_ledger.domain.repository import LedgerStoreProtocol
from src.bm_ledger.infrastructure.backend import get_ledger_store
from src.bm_market.application.schemas import (
    MarketListResponse,
    MarketOut,
    SettlementResponse,
    TransactionOut,
)
from src.bm_market.application.service import MarketLifecycleEngine


class AdminService:
    def __init__(
        self,
        engine: MarketLifecycleEngine | None = None,
        repo: LedgerStoreProtocol | None = None,
    ) -> None:
        self._repo: LedgerStoreProtocol = repo or get_ledger_store()
        self._engine = engine or MarketLifecycleEngine(repo=self._repo)

    async def settle_market(
        self, db: Any, admin_id: str, market_id: int, settlement: str
    ) -> SettlementResponse:
        result = await self._engine.settle_market(db, admin_id, market_id, settlement)
        return SettlementResponse.from_result(result)

    async def list_markets(self, db: Any, status: str | None = None) -> MarketListResponse:
        markets = await self._engine.list_markets(db, status)
        return MarketListResponse(items=[MarketOut.from_domain(m) for m in markets])

    async def list_pending_settlement(self, db: Any) -> MarketListResponse:
        """Active markets: both sides staked, waiting for an outcome."""
        return await self.list_markets(db, MarketStatus.ACTIVE.value)

    async def list_refunds(self, db: Any, pending_only: bool = True) -> list[dict[str, Any]]:
        """Refund rows; pending = no payout signature recorded yet."""
        txs = await self._repo.list_refund_transactions(db, pending_only)
        return [TransactionOut.from_domain(t).model_dump() for t in txs]
