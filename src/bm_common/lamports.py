"""Integer arithmetic utilities for lamport-denominated stakes.

All stakes, payouts, fees and balances are int lamports (1 SOL = 1e9).
Decimal is used only to parse SOL strings at the HTTP boundary; no float.
"""

from decimal import Decimal, InvalidOperation

LAMPORTS_PER_SOL = 1_000_000_000
BPS_DENOMINATOR = 10_000
MIN_ODDS_BPS = 1_000      # 0.1
MAX_ODDS_BPS = 100_000    # 10


def sol_to_lamports(value: str) -> int:
    """Parse a SOL decimal string exactly: '0.10' -> 100_000_000.

    Raises ValueError for non-numeric input, negatives, or more than
    nine fractional digits.
    """
    try:
        amount = Decimal(value.strip())
    except (InvalidOperation, AttributeError):
        raise ValueError(f"Not a decimal amount: {value!r}") from None
    if not amount.is_finite() or amount < 0:
        raise ValueError(f"Amount must be a non-negative number: {value!r}")
    lamports = amount * LAMPORTS_PER_SOL
    if lamports != lamports.to_integral_value():
        raise ValueError(f"Amount has more than 9 decimal places: {value!r}")
    return int(lamports)


def lamports_to_display(lamports: int) -> str:
    """Convert lamports to display string: 196_000_000 -> '0.196 SOL'."""
    sign = "-" if lamports < 0 else ""
    whole, frac = divmod(abs(lamports), LAMPORTS_PER_SOL)
    if frac == 0:
        return f"{sign}{whole} SOL"
    return f"{sign}{whole}.{frac:09d}".rstrip("0") + " SOL"


def parse_odds_bps(value: str) -> int:
    """Parse an odds ratio string into basis points: '2.00' -> 20_000."""
    try:
        odds = Decimal(value.strip())
    except (InvalidOperation, AttributeError):
        raise ValueError(f"Not a decimal odds value: {value!r}") from None
    if not odds.is_finite():
        raise ValueError(f"Not a decimal odds value: {value!r}")
    bps = odds * BPS_DENOMINATOR
    if bps != bps.to_integral_value():
        raise ValueError(f"Odds have more than 4 decimal places: {value!r}")
    return int(bps)


def odds_to_display(odds_bps: int) -> str:
    """20_000 -> '2.00'."""
    whole, frac = divmod(odds_bps, BPS_DENOMINATOR)
    return f"{whole}.{frac // 100:02d}"


def counterparty_stake_for(stake: int, odds_bps: int) -> int:
    """Counterparty stake implied by odds: stake / odds, floored to a lamport."""
    return stake * BPS_DENOMINATOR // odds_bps


def calculate_fee(amount: int, fee_rate_bps: int) -> int:
    """Calculate fee with ceiling division (platform never loses).

    fee = ceil(amount * fee_rate_bps / 10000)
    Using integer ceiling: (a + b - 1) // b
    """
    if amount == 0 or fee_rate_bps == 0:
        return 0
    return (amount * fee_rate_bps + BPS_DENOMINATOR - 1) // BPS_DENOMINATOR


def odds_bps_for(stake: int, counterparty_stake: int) -> int:
    """Odds implied by two stakes, rounded to the nearest basis point."""
    return (stake * BPS_DENOMINATOR + counterparty_stake // 2) // counterparty_stake
