"""InMemoryLedgerStore — dict-backed LedgerStoreProtocol for local dev and tests.

Unit of work: every mutation records an undo action on the MemorySession it
was given; `rollback()` replays them in reverse, `commit()` forgets them.

Market rows are locked like Postgres row locks: creating or transitioning a
market takes that market's asyncio.Lock and the session keeps it until
commit or rollback, so no other session can transition a row whose change
is still uncommitted, and a rollback never restores a snapshot over
someone else's write. Plain reads see uncommitted state (the engine
re-checks through the conditional writes). Each method first yields to the
loop so concurrent requests interleave the way they would against a real
database driver.
"""

import asyncio
import itertools
from collections import defaultdict
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime

from src.bm_common.datetime_utils import utc_now
from src.bm_common.enums import MarketStatus, SettlementOutcome, TransactionType
from src.bm_common.errors import InternalError
from src.bm_ledger.domain.models import Market, NewMarket, Transaction, User


class MemorySession:
    """Stand-in for AsyncSession: commit/rollback over an undo journal."""

    def __init__(self) -> None:
        self._undo: list[Callable[[], None]] = []
        self._locks: list[asyncio.Lock] = []

    def record(self, undo: Callable[[], None]) -> None:
        self._undo.append(undo)

    async def lock(self, row_lock: asyncio.Lock) -> None:
        """Hold `row_lock` until this session ends; re-entrant per session."""
        if any(held is row_lock for held in self._locks):
            return
        await row_lock.acquire()
        self._locks.append(row_lock)

    def _release(self) -> None:
        while self._locks:
            self._locks.pop().release()

    @property
    def dirty(self) -> bool:
        return bool(self._undo)

    async def commit(self) -> None:
        self._undo.clear()
        self._release()

    async def rollback(self) -> None:
        try:
            while self._undo:
                self._undo.pop()()
        finally:
            self._release()


class InMemoryLedgerStore:
    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self._users: dict[str, User] = {}
        self._markets: dict[int, Market] = {}
        self._transactions: dict[int, Transaction] = {}
        self._market_ids = itertools.count(1)
        self._tx_ids = itertools.count(1)
        self._market_locks: dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    # --- users ---

    async def get_user(self, db: MemorySession, user_id: str) -> User | None:
        await asyncio.sleep(0)
        user = self._users.get(user_id)
        return replace(user) if user else None

    async def upsert_user(
        self, db: MemorySession, user_id: str, initial_balance: int
    ) -> User:
        await asyncio.sleep(0)
        now = utc_now()
        user = self._users.get(user_id)
        if user is None:
            user = User(
                id=user_id, balance=initial_balance, created_at=now, updated_at=now
            )
            self._users[user_id] = user
            db.record(lambda: self._users.pop(user_id, None))
        else:
            user.updated_at = now
        return replace(user)

    async def update_user_balance(
        self, db: MemorySession, user_id: str, delta: int
    ) -> User | None:
        await asyncio.sleep(0)
        user = self._users.get(user_id)
        if user is None or user.balance + delta < 0:
            return None
        user.balance += delta
        user.updated_at = utc_now()

        def undo() -> None:
            user.balance -= delta

        db.record(undo)
        return replace(user)

    def set_admin(self, user_id: str, is_admin: bool = True) -> None:
        """Seed helper: the HTTP surface never grants admin rights."""
        self._users[user_id].is_admin = is_admin

    # --- markets ---

    async def create_market(self, db: MemorySession, market: NewMarket) -> Market:
        await asyncio.sleep(0)
        market_id = next(self._market_ids)
        await db.lock(self._market_locks[market_id])
        created = Market(
            id=market_id,
            title=market.title,
            description=market.description,
            category=market.category,
            stake_amount=market.stake_amount,
            counterparty_stake_amount=market.counterparty_stake_amount,
            odds_bps=market.odds_bps,
            creator_id=market.creator_id,
            counterparty_id=None,
            status=MarketStatus.OPEN.value,
            settlement=None,
            expiry_date=market.expiry_date,
            payment_signature=market.payment_signature,
            counterparty_payment_signature=None,
            created_at=utc_now(),
        )
        self._markets[market_id] = created
        db.record(lambda: self._markets.pop(market_id, None))
        return replace(created)

    async def get_market(self, db: MemorySession, market_id: int) -> Market | None:
        await asyncio.sleep(0)
        market = self._markets.get(market_id)
        return replace(market) if market else None

    async def get_markets(self, db: MemorySession, status: str | None) -> list[Market]:
        await asyncio.sleep(0)
        if status is not None:
            status = MarketStatus(status).value
        markets = [
            m for m in self._markets.values() if status is None or m.status == status
        ]
        return [replace(m) for m in sorted(markets, key=lambda m: m.id, reverse=True)]

    async def get_user_markets(self, db: MemorySession, user_id: str) -> list[Market]:
        await asyncio.sleep(0)
        markets = [
            m
            for m in self._markets.values()
            if m.creator_id == user_id or m.counterparty_id == user_id
        ]
        return [replace(m) for m in sorted(markets, key=lambda m: m.id, reverse=True)]

    async def _lock_market(self, db: MemorySession, market_id: int) -> None:
        if market_id in self._markets:
            await db.lock(self._market_locks[market_id])

    def _snapshot_undo(self, db: MemorySession, market: Market) -> None:
        before = replace(market)

        def undo() -> None:
            self._markets[before.id] = before

        db.record(undo)

    async def join_market(
        self,
        db: MemorySession,
        market_id: int,
        counterparty_id: str,
        payment_signature: str,
    ) -> Market | None:
        await asyncio.sleep(0)
        await self._lock_market(db, market_id)
        market = self._markets.get(market_id)
        if (
            market is None
            or market.status != MarketStatus.OPEN
            or market.counterparty_id is not None
        ):
            return None
        self._snapshot_undo(db, market)
        market.counterparty_id = counterparty_id
        market.counterparty_payment_signature = payment_signature
        market.status = MarketStatus.ACTIVE.value
        return replace(market)

    async def settle_market(
        self,
        db: MemorySession,
        market_id: int,
        settlement: str,
        settled_at: datetime,
    ) -> Market | None:
        await asyncio.sleep(0)
        outcome = SettlementOutcome(settlement).value
        await self._lock_market(db, market_id)
        market = self._markets.get(market_id)
        if (
            market is None
            or market.status != MarketStatus.ACTIVE
            or market.counterparty_id is None
        ):
            return None
        self._snapshot_undo(db, market)
        market.status = MarketStatus.SETTLED.value
        market.settlement = outcome
        market.settled_at = settled_at
        return replace(market)

    async def cancel_market(
        self, db: MemorySession, market_id: int, cancelled_at: datetime
    ) -> Market | None:
        await asyncio.sleep(0)
        await self._lock_market(db, market_id)
        market = self._markets.get(market_id)
        if (
            market is None
            or market.status != MarketStatus.OPEN
            or market.counterparty_id is not None
        ):
            return None
        self._snapshot_undo(db, market)
        market.status = MarketStatus.CANCELLED.value
        market.cancelled_at = cancelled_at
        return replace(market)

    # --- transactions ---

    async def create_transaction(
        self,
        db: MemorySession,
        user_id: str,
        market_id: int | None,
        tx_type: str,
        amount: int,
        description: str,
        payment_signature: str | None = None,
    ) -> Transaction:
        await asyncio.sleep(0)
        if amount <= 0:
            raise InternalError(f"Transaction amount must be positive, got {amount}")
        tx_id = next(self._tx_ids)
        tx = Transaction(
            id=tx_id,
            user_id=user_id,
            market_id=market_id,
            type=TransactionType(tx_type).value,
            amount=amount,
            description=description,
            payment_signature=payment_signature,
            created_at=utc_now(),
        )
        self._transactions[tx_id] = tx
        db.record(lambda: self._transactions.pop(tx_id, None))
        return replace(tx)

    async def get_user_transactions(
        self, db: MemorySession, user_id: str
    ) -> list[Transaction]:
        await asyncio.sleep(0)
        txs = [t for t in self._transactions.values() if t.user_id == user_id]
        return [replace(t) for t in sorted(txs, key=lambda t: t.id, reverse=True)]

    async def list_refund_transactions(
        self, db: MemorySession, pending_only: bool
    ) -> list[Transaction]:
        await asyncio.sleep(0)
        txs = [
            t
            for t in self._transactions.values()
            if t.type == TransactionType.REFUND
            and (not pending_only or t.payment_signature is None)
        ]
        return [replace(t) for t in sorted(txs, key=lambda t: t.id, reverse=True)]
