"""Engine inputs and results — pure dataclasses."""

from dataclasses import dataclass
from datetime import datetime

from src.bm_ledger.domain.models import Market, Transaction
from src.bm_market.domain.settlement import SettlementSummary


@dataclass
class MarketDraft:
    """Validated-at-the-boundary creation request, amounts already in lamports."""

    title: str
    category: str
    stake_amount: int
    odds_bps: int | None                           # derived from the two stakes when None
    expiry_date: datetime | None
    payment_signature: str | None
    description: str | None = None
    counterparty_stake_amount: int | None = None   # derived from odds when None


@dataclass(frozen=True)
class MarketRules:
    fee_bps: int = 200
    min_stake: int = 10_000_000
    max_stake: int = 1_000_000_000_000_000
    min_signature_length: int = 10
    custodial: bool = False
    platform_user_id: str = "platform"


@dataclass
class SettlementResult:
    market: Market
    summary: SettlementSummary
    transactions: list[Transaction]


@dataclass
class CancellationResult:
    market: Market
    refund: Transaction
