"""Global enums — must match DB CHECK constraints exactly.

Values are lowercase to stay wire-compatible with existing BetMatch clients.
"""

from enum import Enum


class MarketStatus(str, Enum):
    OPEN = "open"
    ACTIVE = "active"
    SETTLED = "settled"
    CANCELLED = "cancelled"


class SettlementOutcome(str, Enum):
    CREATOR_WINS = "creator_wins"
    COUNTERPARTY_WINS = "counterparty_wins"
    REFUND = "refund"


class TransactionType(str, Enum):
    STAKE = "stake"
    PAYOUT = "payout"
    FEE = "fee"
    REFUND = "refund"
