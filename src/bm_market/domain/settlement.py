"""Settlement arithmetic — pure functions over integer lamports.

Decisive outcome:  pot = creator stake + counterparty stake
                   fee = ceil(pot * fee_bps / 10000)
                   winner receives pot - fee
Refund:            each party receives exactly their own stake, no fee.
"""

from dataclasses import dataclass, field

from src.bm_common.enums import SettlementOutcome, TransactionType
from src.bm_common.lamports import calculate_fee
from src.bm_ledger.domain.models import Market


@dataclass(frozen=True)
class Disbursement:
    user_id: str
    tx_type: TransactionType
    amount: int


@dataclass(frozen=True)
class SettlementSummary:
    outcome: SettlementOutcome
    total_pot: int
    platform_fee: int
    winner_payout: int | None          # None on refund
    payout_recipient: str              # winner wallet, or "both" on refund
    creator_refund: int = 0
    counterparty_refund: int = 0
    disbursements: tuple[Disbursement, ...] = field(default_factory=tuple)

    @property
    def distributed(self) -> int:
        """Total returned to the two parties (fee excluded)."""
        return sum(
            d.amount for d in self.disbursements if d.tx_type != TransactionType.FEE
        )


def compute_settlement(
    market: Market,
    outcome: SettlementOutcome,
    fee_bps: int,
    platform_user_id: str,
) -> SettlementSummary:
    if market.counterparty_id is None:
        raise ValueError(f"Market {market.id} has no counterparty")

    total_pot = market.total_pot

    if outcome == SettlementOutcome.REFUND:
        return SettlementSummary(
            outcome=outcome,
            total_pot=total_pot,
            platform_fee=0,
            winner_payout=None,
            payout_recipient="both",
            creator_refund=market.stake_amount,
            counterparty_refund=market.counterparty_stake_amount,
            disbursements=(
                Disbursement(market.creator_id, TransactionType.REFUND, market.stake_amount),
                Disbursement(
                    market.counterparty_id,
                    TransactionType.REFUND,
                    market.counterparty_stake_amount,
                ),
            ),
        )

    winner = (
        market.creator_id
        if outcome == SettlementOutcome.CREATOR_WINS
        else market.counterparty_id
    )
    platform_fee = calculate_fee(total_pot, fee_bps)
    winner_payout = total_pot - platform_fee
    disbursements = [Disbursement(winner, TransactionType.PAYOUT, winner_payout)]
    if platform_fee > 0:
        disbursements.append(
            Disbursement(platform_user_id, TransactionType.FEE, platform_fee)
        )
    return SettlementSummary(
        outcome=outcome,
        total_pot=total_pot,
        platform_fee=platform_fee,
        winner_payout=winner_payout,
        payout_recipient=winner,
        disbursements=tuple(disbursements),
    )
