"""Domain models for bm_ledger — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    id: str                  # wallet public key
    balance: int             # lamports, custodial variant only
    is_admin: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class Market:
    id: int
    title: str
    description: str | None
    category: str
    stake_amount: int                # lamports, creator side
    counterparty_stake_amount: int   # lamports, joiner side
    odds_bps: int                    # 10000 = 1.00
    creator_id: str
    counterparty_id: str | None
    status: str                      # MarketStatus value
    settlement: str | None           # SettlementOutcome value
    expiry_date: datetime
    payment_signature: str | None
    counterparty_payment_signature: str | None
    created_at: datetime
    settled_at: datetime | None = None
    cancelled_at: datetime | None = None

    @property
    def total_pot(self) -> int:
        return self.stake_amount + self.counterparty_stake_amount


@dataclass
class NewMarket:
    """Insert payload — everything the store needs to create an open market."""

    title: str
    description: str | None
    category: str
    stake_amount: int
    counterparty_stake_amount: int
    odds_bps: int
    creator_id: str
    expiry_date: datetime
    payment_signature: str | None


@dataclass
class Transaction:
    id: int
    user_id: str
    market_id: int | None
    type: str                        # TransactionType value
    amount: int                      # lamports, always positive
    description: str | None = None
    payment_signature: str | None = None
    created_at: datetime | None = None
