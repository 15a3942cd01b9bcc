"""LedgerRepository — PostgreSQL implementation of LedgerStoreProtocol.

All queries use raw text() SQL (no ORM).
State transitions are single-statement conditional UPDATE ... RETURNING;
zero rows back means the guard failed (lost race or illegal transition).
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.

Transaction ownership: the CALLER commits or rolls back the AsyncSession.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_common.enums import MarketStatus, SettlementOutcome, TransactionType
from src.bm_common.errors import InternalError
from src.bm_ledger.domain.models import Market, NewMarket, Transaction, User

# ---------------------------------------------------------------------------
# SQL: users
# ---------------------------------------------------------------------------

_USER_COLUMNS = "id, balance, is_admin, created_at, updated_at"

_GET_USER_SQL = text(f"""
    SELECT {_USER_COLUMNS}
    FROM users
    WHERE id = :user_id
""")

# DO UPDATE (not DO NOTHING) so RETURNING always yields the row
_UPSERT_USER_SQL = text(f"""
    INSERT INTO users (id, balance)
    VALUES (:user_id, :balance)
    ON CONFLICT (id) DO UPDATE
        SET updated_at = NOW()
    RETURNING {_USER_COLUMNS}
""")

_UPDATE_BALANCE_SQL = text(f"""
    UPDATE users
    SET balance = balance + :delta,
        updated_at = NOW()
    WHERE id = :user_id AND balance + :delta >= 0
    RETURNING {_USER_COLUMNS}
""")

# ---------------------------------------------------------------------------
# SQL: markets
# ---------------------------------------------------------------------------

_MARKET_COLUMNS = """
    id, title, description, category,
    stake_amount, counterparty_stake_amount, odds_bps,
    creator_id, counterparty_id, status, settlement,
    expiry_date, payment_signature, counterparty_payment_signature,
    created_at, settled_at, cancelled_at
"""

_INSERT_MARKET_SQL = text(f"""
    INSERT INTO markets
        (title, description, category,
         stake_amount, counterparty_stake_amount, odds_bps,
         creator_id, status, expiry_date, payment_signature)
    VALUES
        (:title, :description, :category,
         :stake_amount, :counterparty_stake_amount, :odds_bps,
         :creator_id, 'open', :expiry_date, :payment_signature)
    RETURNING {_MARKET_COLUMNS}
""")

_GET_MARKET_SQL = text(f"""
    SELECT {_MARKET_COLUMNS}
    FROM markets
    WHERE id = :market_id
""")

_LIST_MARKETS_SQL = text(f"""
    SELECT {_MARKET_COLUMNS}
    FROM markets
    WHERE CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT)
    ORDER BY created_at DESC, id DESC
""")

_USER_MARKETS_SQL = text(f"""
    SELECT {_MARKET_COLUMNS}
    FROM markets
    WHERE creator_id = :user_id OR counterparty_id = :user_id
    ORDER BY created_at DESC, id DESC
""")

_JOIN_MARKET_SQL = text(f"""
    UPDATE markets
    SET counterparty_id = :counterparty_id,
        counterparty_payment_signature = :payment_signature,
        status = 'active'
    WHERE id = :market_id
      AND status = 'open'
      AND counterparty_id IS NULL
    RETURNING {_MARKET_COLUMNS}
""")

_SETTLE_MARKET_SQL = text(f"""
    UPDATE markets
    SET status = 'settled',
        settlement = :settlement,
        settled_at = :settled_at
    WHERE id = :market_id
      AND status = 'active'
      AND counterparty_id IS NOT NULL
    RETURNING {_MARKET_COLUMNS}
""")

_CANCEL_MARKET_SQL = text(f"""
    UPDATE markets
    SET status = 'cancelled',
        cancelled_at = :cancelled_at
    WHERE id = :market_id
      AND status = 'open'
      AND counterparty_id IS NULL
    RETURNING {_MARKET_COLUMNS}
""")

# ---------------------------------------------------------------------------
# SQL: transactions (append-only)
# ---------------------------------------------------------------------------

_TX_COLUMNS = """
    id, user_id, market_id, type, amount, description, payment_signature, created_at
"""

_INSERT_TX_SQL = text(f"""
    INSERT INTO transactions
        (user_id, market_id, type, amount, description, payment_signature)
    VALUES
        (:user_id, :market_id, :type, :amount, :description, :payment_signature)
    RETURNING {_TX_COLUMNS}
""")

_USER_TX_SQL = text(f"""
    SELECT {_TX_COLUMNS}
    FROM transactions
    WHERE user_id = :user_id
    ORDER BY created_at DESC, id DESC
""")

_REFUND_TX_SQL = text(f"""
    SELECT {_TX_COLUMNS}
    FROM transactions
    WHERE type = 'refund'
      AND (CAST(:pending_only AS BOOLEAN) IS FALSE OR payment_signature IS NULL)
    ORDER BY created_at DESC, id DESC
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_user(row: object) -> User:
    return User(
        id=row.id,  # type: ignore[attr-defined]
        balance=row.balance,  # type: ignore[attr-defined]
        is_admin=row.is_admin,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_market(row: object) -> Market:
    return Market(
        id=row.id,  # type: ignore[attr-defined]
        title=row.title,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        category=row.category,  # type: ignore[attr-defined]
        stake_amount=row.stake_amount,  # type: ignore[attr-defined]
        counterparty_stake_amount=row.counterparty_stake_amount,  # type: ignore[attr-defined]
        odds_bps=row.odds_bps,  # type: ignore[attr-defined]
        creator_id=row.creator_id,  # type: ignore[attr-defined]
        counterparty_id=row.counterparty_id,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        settlement=row.settlement,  # type: ignore[attr-defined]
        expiry_date=row.expiry_date,  # type: ignore[attr-defined]
        payment_signature=row.payment_signature,  # type: ignore[attr-defined]
        counterparty_payment_signature=row.counterparty_payment_signature,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        settled_at=row.settled_at,  # type: ignore[attr-defined]
        cancelled_at=row.cancelled_at,  # type: ignore[attr-defined]
    )


def _row_to_transaction(row: object) -> Transaction:
    return Transaction(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        market_id=row.market_id,  # type: ignore[attr-defined]
        type=row.type,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        payment_signature=row.payment_signature,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class LedgerRepository:
    """Concrete repository — every mutation atomic at the SQL level."""

    # --- users ---

    async def get_user(self, db: AsyncSession, user_id: str) -> User | None:
        result = await db.execute(_GET_USER_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_user(row) if row else None

    async def upsert_user(
        self, db: AsyncSession, user_id: str, initial_balance: int
    ) -> User:
        result = await db.execute(
            _UPSERT_USER_SQL, {"user_id": user_id, "balance": initial_balance}
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("User upsert returned no rows — this should never happen")
        return _row_to_user(row)

    async def update_user_balance(
        self, db: AsyncSession, user_id: str, delta: int
    ) -> User | None:
        result = await db.execute(
            _UPDATE_BALANCE_SQL, {"user_id": user_id, "delta": delta}
        )
        row = result.fetchone()
        return _row_to_user(row) if row else None

    # --- markets ---

    async def create_market(self, db: AsyncSession, market: NewMarket) -> Market:
        result = await db.execute(
            _INSERT_MARKET_SQL,
            {
                "title": market.title,
                "description": market.description,
                "category": market.category,
                "stake_amount": market.stake_amount,
                "counterparty_stake_amount": market.counterparty_stake_amount,
                "odds_bps": market.odds_bps,
                "creator_id": market.creator_id,
                "expiry_date": market.expiry_date,
                "payment_signature": market.payment_signature,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Market insert returned no rows — this should never happen")
        return _row_to_market(row)

    async def get_market(self, db: AsyncSession, market_id: int) -> Market | None:
        result = await db.execute(_GET_MARKET_SQL, {"market_id": market_id})
        row = result.fetchone()
        return _row_to_market(row) if row else None

    async def get_markets(self, db: AsyncSession, status: str | None) -> list[Market]:
        if status is not None:
            status = MarketStatus(status).value
        result = await db.execute(_LIST_MARKETS_SQL, {"status": status})
        return [_row_to_market(row) for row in result.fetchall()]

    async def get_user_markets(self, db: AsyncSession, user_id: str) -> list[Market]:
        result = await db.execute(_USER_MARKETS_SQL, {"user_id": user_id})
        return [_row_to_market(row) for row in result.fetchall()]

    async def join_market(
        self,
        db: AsyncSession,
        market_id: int,
        counterparty_id: str,
        payment_signature: str,
    ) -> Market | None:
        result = await db.execute(
            _JOIN_MARKET_SQL,
            {
                "market_id": market_id,
                "counterparty_id": counterparty_id,
                "payment_signature": payment_signature,
            },
        )
        row = result.fetchone()
        return _row_to_market(row) if row else None

    async def settle_market(
        self,
        db: AsyncSession,
        market_id: int,
        settlement: str,
        settled_at: datetime,
    ) -> Market | None:
        result = await db.execute(
            _SETTLE_MARKET_SQL,
            {
                "market_id": market_id,
                "settlement": SettlementOutcome(settlement).value,
                "settled_at": settled_at,
            },
        )
        row = result.fetchone()
        return _row_to_market(row) if row else None

    async def cancel_market(
        self, db: AsyncSession, market_id: int, cancelled_at: datetime
    ) -> Market | None:
        result = await db.execute(
            _CANCEL_MARKET_SQL,
            {"market_id": market_id, "cancelled_at": cancelled_at},
        )
        row = result.fetchone()
        return _row_to_market(row) if row else None

    # --- transactions ---

    async def create_transaction(
        self,
        db: AsyncSession,
        user_id: str,
        market_id: int | None,
        tx_type: str,
        amount: int,
        description: str,
        payment_signature: str | None = None,
    ) -> Transaction:
        if amount <= 0:
            raise InternalError(f"Transaction amount must be positive, got {amount}")
        result = await db.execute(
            _INSERT_TX_SQL,
            {
                "user_id": user_id,
                "market_id": market_id,
                "type": TransactionType(tx_type).value,
                "amount": amount,
                "description": description,
                "payment_signature": payment_signature,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Transaction insert returned no rows — this should never happen")
        return _row_to_transaction(row)

    async def get_user_transactions(
        self, db: AsyncSession, user_id: str
    ) -> list[Transaction]:
        result = await db.execute(_USER_TX_SQL, {"user_id": user_id})
        return [_row_to_transaction(row) for row in result.fetchall()]

    async def list_refund_transactions(
        self, db: AsyncSession, pending_only: bool
    ) -> list[Transaction]:
        result = await db.execute(_REFUND_TX_SQL, {"pending_only": pending_only})
        return [_row_to_transaction(row) for row in result.fetchall()]
