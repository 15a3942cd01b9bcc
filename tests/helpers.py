"""Constants and builders shared by the unit tests."""

from datetime import timedelta

from src.bm_common.datetime_utils import utc_now
from src.bm_market.domain.models import MarketDraft

ADMIN = "AdminWa11et1111111111111111111111111111111"
ALICE = "A1iceWa11et111111111111111111111111111111"
BOB = "BobWa11et11111111111111111111111111111111"
CAROL = "Caro1Wa11et11111111111111111111111111111"
SIG = "5" * 88

SOL = 1_000_000_000


def make_draft(**kwargs) -> MarketDraft:
    defaults = dict(
        title="BTC above 100k by Friday",
        category="crypto",
        stake_amount=100_000_000,   # 0.10 SOL
        odds_bps=10_000,            # 1.00
        expiry_date=utc_now() + timedelta(days=7),
        payment_signature=SIG,
        description=None,
        counterparty_stake_amount=None,
    )
    defaults.update(kwargs)
    return MarketDraft(**defaults)
