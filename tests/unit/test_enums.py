"""Tests for bm_common.enums — values must match DB CHECK constraints."""

from src.bm_common.enums import MarketStatus, SettlementOutcome, TransactionType


class TestAllEnumsAreStr:
    def test_market_status_is_str(self) -> None:
        assert isinstance(MarketStatus.OPEN, str)
        assert MarketStatus.OPEN == "open"

    def test_settlement_outcome_is_str(self) -> None:
        assert SettlementOutcome.CREATOR_WINS == "creator_wins"

    def test_transaction_type_is_str(self) -> None:
        assert TransactionType.REFUND == "refund"


class TestEnumMembers:
    def test_market_status_values(self) -> None:
        assert {s.value for s in MarketStatus} == {"open", "active", "settled", "cancelled"}

    def test_settlement_values(self) -> None:
        assert {s.value for s in SettlementOutcome} == {
            "creator_wins",
            "counterparty_wins",
            "refund",
        }

    def test_transaction_type_values(self) -> None:
        assert {t.value for t in TransactionType} == {"stake", "payout", "fee", "refund"}
