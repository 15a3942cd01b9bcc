"""Pydantic schemas for bm_market API requests and responses.

Amounts travel as SOL decimal strings on the way in ("0.10") and as both
integer lamports and a display string on the way out.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from src.bm_common.datetime_utils import to_iso
from src.bm_common.errors import InvalidAmountError
from src.bm_common.lamports import (
    lamports_to_display,
    odds_to_display,
    parse_odds_bps,
    sol_to_lamports,
)
from src.bm_ledger.domain.models import Market, Transaction
from src.bm_market.domain.models import MarketDraft, SettlementResult
from src.bm_market.domain.settlement import SettlementSummary


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateMarketRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    category: str = Field(..., min_length=1, max_length=50)
    stake_amount: str = Field(..., description="Creator stake in SOL, e.g. '0.10'")
    counterparty_stake_amount: str | None = Field(
        None, description="Joiner stake in SOL; derived from odds when omitted"
    )
    odds: str | None = Field(
        None,
        description="Creator stake / counterparty stake, 0.1 - 10; 1.00 when both are omitted",
    )
    expiry_date: datetime
    payment_signature: str | None = None

    def to_draft(self) -> MarketDraft:
        """Convert SOL strings to lamports; raises InvalidAmountError on bad input."""
        try:
            stake = sol_to_lamports(self.stake_amount)
        except ValueError:
            raise InvalidAmountError(self.stake_amount) from None
        counterparty_stake: int | None = None
        if self.counterparty_stake_amount is not None:
            try:
                counterparty_stake = sol_to_lamports(self.counterparty_stake_amount)
            except ValueError:
                raise InvalidAmountError(self.counterparty_stake_amount) from None
        odds_bps: int | None = None
        if self.odds is not None:
            try:
                odds_bps = parse_odds_bps(self.odds)
            except ValueError:
                raise InvalidAmountError(self.odds) from None
        return MarketDraft(
            title=self.title,
            description=self.description,
            category=self.category,
            stake_amount=stake,
            counterparty_stake_amount=counterparty_stake,
            odds_bps=odds_bps,
            expiry_date=self.expiry_date,
            payment_signature=self.payment_signature,
        )


class JoinMarketRequest(BaseModel):
    payment_signature: str | None = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class MarketOut(BaseModel):
    id: int
    title: str
    description: str | None
    category: str
    stake_lamports: int
    stake_display: str
    counterparty_stake_lamports: int
    counterparty_stake_display: str
    total_pot_lamports: int
    odds: str
    creator_id: str
    counterparty_id: str | None
    status: str
    settlement: str | None
    expiry_date: str | None
    payment_signature: str | None
    counterparty_payment_signature: str | None
    created_at: str | None
    settled_at: str | None
    cancelled_at: str | None

    @classmethod
    def from_domain(cls, m: Market) -> "MarketOut":
        return cls(
            id=m.id,
            title=m.title,
            description=m.description,
            category=m.category,
            stake_lamports=m.stake_amount,
            stake_display=lamports_to_display(m.stake_amount),
            counterparty_stake_lamports=m.counterparty_stake_amount,
            counterparty_stake_display=lamports_to_display(m.counterparty_stake_amount),
            total_pot_lamports=m.total_pot,
            odds=odds_to_display(m.odds_bps),
            creator_id=m.creator_id,
            counterparty_id=m.counterparty_id,
            status=m.status,
            settlement=m.settlement,
            expiry_date=to_iso(m.expiry_date),
            payment_signature=m.payment_signature,
            counterparty_payment_signature=m.counterparty_payment_signature,
            created_at=to_iso(m.created_at),
            settled_at=to_iso(m.settled_at),
            cancelled_at=to_iso(m.cancelled_at),
        )


class TransactionOut(BaseModel):
    id: int
    user_id: str
    market_id: int | None
    type: str
    amount_lamports: int
    amount_display: str
    description: str | None
    payment_signature: str | None
    created_at: str | None

    @classmethod
    def from_domain(cls, t: Transaction) -> "TransactionOut":
        return cls(
            id=t.id,
            user_id=t.user_id,
            market_id=t.market_id,
            type=t.type,
            amount_lamports=t.amount,
            amount_display=lamports_to_display(t.amount),
            description=t.description,
            payment_signature=t.payment_signature,
            created_at=to_iso(t.created_at),
        )


class MarketListResponse(BaseModel):
    items: list[MarketOut]


class SettlementSummaryOut(BaseModel):
    total_pot_lamports: int
    total_pot_display: str
    platform_fee_lamports: int
    platform_fee_display: str
    winner_payout_lamports: int | None
    winner_payout_display: str | None
    payout_recipient: str
    creator_refund_lamports: int
    counterparty_refund_lamports: int

    @classmethod
    def from_domain(cls, s: SettlementSummary) -> "SettlementSummaryOut":
        return cls(
            total_pot_lamports=s.total_pot,
            total_pot_display=lamports_to_display(s.total_pot),
            platform_fee_lamports=s.platform_fee,
            platform_fee_display=lamports_to_display(s.platform_fee),
            winner_payout_lamports=s.winner_payout,
            winner_payout_display=(
                lamports_to_display(s.winner_payout) if s.winner_payout is not None else None
            ),
            payout_recipient=s.payout_recipient,
            creator_refund_lamports=s.creator_refund,
            counterparty_refund_lamports=s.counterparty_refund,
        )


class SettlementResponse(BaseModel):
    market: MarketOut
    settlement: SettlementSummaryOut
    transactions: list[TransactionOut]

    @classmethod
    def from_result(cls, result: SettlementResult) -> "SettlementResponse":
        return cls(
            market=MarketOut.from_domain(result.market),
            settlement=SettlementSummaryOut.from_domain(result.summary),
            transactions=[TransactionOut.from_domain(t) for t in result.transactions],
        )


class CancellationResponse(BaseModel):
    market: MarketOut
    refund: TransactionOut
