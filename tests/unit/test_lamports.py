"""Tests for bm_common.lamports — integer stake arithmetic."""

import pytest

from src.bm_common.lamports import (
    calculate_fee,
    counterparty_stake_for,
    lamports_to_display,
    odds_to_display,
    parse_odds_bps,
    sol_to_lamports,
)


class TestSolToLamports:
    def test_ten_cents_of_sol(self) -> None:
        assert sol_to_lamports("0.10") == 100_000_000

    def test_whole_sol(self) -> None:
        assert sol_to_lamports("2") == 2_000_000_000

    def test_one_lamport(self) -> None:
        assert sol_to_lamports("0.000000001") == 1

    def test_surrounding_whitespace(self) -> None:
        assert sol_to_lamports(" 0.5 ") == 500_000_000

    def test_too_many_decimals_raises(self) -> None:
        with pytest.raises(ValueError, match="9 decimal"):
            sol_to_lamports("0.0000000001")

    def test_negative_raises(self) -> None:
        with pytest.raises(ValueError):
            sol_to_lamports("-1")

    def test_garbage_raises(self) -> None:
        with pytest.raises(ValueError):
            sol_to_lamports("ten")

    def test_infinity_raises(self) -> None:
        with pytest.raises(ValueError):
            sol_to_lamports("Infinity")


class TestLamportsToDisplay:
    def test_fractional(self) -> None:
        assert lamports_to_display(196_000_000) == "0.196 SOL"

    def test_whole(self) -> None:
        assert lamports_to_display(3_000_000_000) == "3 SOL"

    def test_zero(self) -> None:
        assert lamports_to_display(0) == "0 SOL"

    def test_one_lamport(self) -> None:
        assert lamports_to_display(1) == "0.000000001 SOL"

    def test_negative(self) -> None:
        assert lamports_to_display(-4_000_000) == "-0.004 SOL"


class TestOdds:
    def test_parse(self) -> None:
        assert parse_odds_bps("2.00") == 20_000
        assert parse_odds_bps("0.1") == 1_000
        assert parse_odds_bps("10") == 100_000

    def test_parse_garbage_raises(self) -> None:
        with pytest.raises(ValueError):
            parse_odds_bps("evens")

    def test_display(self) -> None:
        assert odds_to_display(20_000) == "2.00"
        assert odds_to_display(1_000) == "0.10"
        assert odds_to_display(12_500) == "1.25"

    def test_counterparty_stake_even_odds(self) -> None:
        assert counterparty_stake_for(100_000_000, 10_000) == 100_000_000

    def test_counterparty_stake_two_to_one(self) -> None:
        assert counterparty_stake_for(100_000_000, 20_000) == 50_000_000

    def test_counterparty_stake_floors(self) -> None:
        # 0.10 / 3 = 0.0333333333... SOL, floored to the lamport
        assert counterparty_stake_for(100_000_000, 30_000) == 33_333_333


class TestCalculateFee:
    def test_two_percent_of_point_two(self) -> None:
        assert calculate_fee(200_000_000, 200) == 4_000_000

    def test_zero_amount(self) -> None:
        assert calculate_fee(0, 200) == 0

    def test_zero_rate(self) -> None:
        assert calculate_fee(200_000_000, 0) == 0

    def test_rounds_up(self) -> None:
        # 10_000_001 * 0.02 = 200_000.02 → platform rounds up
        assert calculate_fee(10_000_001, 200) == 200_001
