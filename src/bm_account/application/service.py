"""AccountApplicationService — wallet identity resolution and dashboard reads.

resolve_user is the only write: first sight of a wallet creates its user row
(upsert-on-read) and commits before the request's own unit of work starts.
"""

from typing import Any

from config.settings import settings
from src.bm_account.application.schemas import (
    BalanceResponse,
    UserMarketsResponse,
    UserTransactionsResponse,
)
from src.bm_common.lamports import lamports_to_display
from src.bm_ledger.domain.models import User
from src.bm_ledger.domain.repository import LedgerStoreProtocol
from src.bm_ledger.infrastructure.backend import get_ledger_store
from src.bm_market.application.schemas import MarketOut, TransactionOut


class AccountApplicationService:
    def __init__(
        self,
        repo: LedgerStoreProtocol | None = None,
        initial_balance: int | None = None,
    ) -> None:
        self._repo: LedgerStoreProtocol = repo or get_ledger_store()
        self._initial_balance = (
            settings.DEFAULT_USER_BALANCE_LAMPORTS
            if initial_balance is None
            else initial_balance
        )

    async def resolve_user(self, db: Any, wallet: str) -> User:
        existing = await self._repo.get_user(db, wallet)
        if existing is not None:
            return existing
        try:
            user = await self._repo.upsert_user(db, wallet, self._initial_balance)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return user

    def get_balance(self, user: User) -> BalanceResponse:
        return BalanceResponse(
            user_id=user.id,
            balance_lamports=user.balance,
            balance_display=lamports_to_display(user.balance),
            custodial=settings.CUSTODIAL_BALANCES,
        )

    async def list_markets(self, db: Any, user_id: str) -> UserMarketsResponse:
        markets = await self._repo.get_user_markets(db, user_id)
        return UserMarketsResponse(items=[MarketOut.from_domain(m) for m in markets])

    async def list_transactions(self, db: Any, user_id: str) -> UserTransactionsResponse:
        txs = await self._repo.get_user_transactions(db, user_id)
        return UserTransactionsResponse(items=[TransactionOut.from_domain(t) for t in txs])
