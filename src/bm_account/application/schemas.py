"""Pydantic schemas for bm_account API."""

from pydantic import BaseModel

from src.bm_common.datetime_utils import to_iso
from src.bm_common.lamports import lamports_to_display
from src.bm_ledger.domain.models import User
from src.bm_market.application.schemas import MarketOut, TransactionOut


class UserOut(BaseModel):
    id: str
    balance_lamports: int
    balance_display: str
    is_admin: bool
    created_at: str | None

    @classmethod
    def from_domain(cls, user: User, is_admin: bool) -> "UserOut":
        return cls(
            id=user.id,
            balance_lamports=user.balance,
            balance_display=lamports_to_display(user.balance),
            is_admin=is_admin,
            created_at=to_iso(user.created_at),
        )


class BalanceResponse(BaseModel):
    user_id: str
    balance_lamports: int
    balance_display: str
    custodial: bool


class UserMarketsResponse(BaseModel):
    items: list[MarketOut]


class UserTransactionsResponse(BaseModel):
    items: list[TransactionOut]
