# src/bm_ledger/domain/repository.py
"""Ledger store Protocol — dependency inversion for testability.

The engine owns every rule; the store only guarantees atomic single-row
conditional updates and consistent reads. Both the Postgres repository and
the in-memory store conform to this Protocol.

Transaction ownership: the CALLER commits or rolls back `db`.
"""

from datetime import datetime
from typing import Any, Protocol

from src.bm_ledger.domain.models import Market, NewMarket, Transaction, User


class LedgerStoreProtocol(Protocol):
    # --- users ---
    async def get_user(self, db: Any, user_id: str) -> User | None: ...

    async def upsert_user(
        self, db: Any, user_id: str, initial_balance: int
    ) -> User: ...

    async def update_user_balance(
        self, db: Any, user_id: str, delta: int
    ) -> User | None:
        """Apply a signed delta. Returns None if the balance would go negative."""
        ...

    # --- markets ---
    async def create_market(self, db: Any, market: NewMarket) -> Market: ...

    async def get_market(self, db: Any, market_id: int) -> Market | None: ...

    async def get_markets(self, db: Any, status: str | None) -> list[Market]: ...

    async def get_user_markets(self, db: Any, user_id: str) -> list[Market]: ...

    async def join_market(
        self,
        db: Any,
        market_id: int,
        counterparty_id: str,
        payment_signature: str,
    ) -> Market | None:
        """CAS open -> active. None when the market is no longer joinable."""
        ...

    async def settle_market(
        self,
        db: Any,
        market_id: int,
        settlement: str,
        settled_at: datetime,
    ) -> Market | None:
        """CAS active -> settled. None when the market is no longer active."""
        ...

    async def cancel_market(
        self, db: Any, market_id: int, cancelled_at: datetime
    ) -> Market | None:
        """CAS open -> cancelled. None when someone joined or it is already closed."""
        ...

    # --- transactions ---
    async def create_transaction(
        self,
        db: Any,
        user_id: str,
        market_id: int | None,
        tx_type: str,
        amount: int,
        description: str,
        payment_signature: str | None = None,
    ) -> Transaction: ...

    async def get_user_transactions(
        self, db: Any, user_id: str
    ) -> list[Transaction]: ...

    async def list_refund_transactions(
        self, db: Any, pending_only: bool
    ) -> list[Transaction]: ...
