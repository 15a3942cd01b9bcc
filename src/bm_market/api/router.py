"""bm_market REST endpoints.

GET  /markets                   — list, optional ?status= filter (public)
GET  /markets/{market_id}       — detail (public)
POST /markets                   — create, caller becomes creator
POST /markets/{market_id}/join  — take the counterparty side
POST /markets/{market_id}/cancel — creator withdraws an unjoined market
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request

from src.bm_common.response import ApiResponse, success_response
from src.bm_gateway.auth.dependencies import get_current_user
from src.bm_ledger.domain.models import User
from src.bm_ledger.infrastructure.backend import get_ledger_session
from src.bm_market.application.schemas import (
    CancellationResponse,
    CreateMarketRequest,
    JoinMarketRequest,
    MarketListResponse,
    MarketOut,
    TransactionOut,
)
from src.bm_market.application.service import MarketLifecycleEngine

router = APIRouter(prefix="/markets", tags=["markets"])

_engine = MarketLifecycleEngine()


@router.get("")
async def list_markets(
    request: Request,
    db: Annotated[Any, Depends(get_ledger_session)],
    status: str | None = Query(None, description="open | active | settled | cancelled"),
) -> ApiResponse:
    markets = await _engine.list_markets(db, status)
    data = MarketListResponse(items=[MarketOut.from_domain(m) for m in markets])
    return success_response(data.model_dump(), request)


@router.get("/{market_id}")
async def get_market(
    market_id: int,
    request: Request,
    db: Annotated[Any, Depends(get_ledger_session)],
) -> ApiResponse:
    market = await _engine.get_market(db, market_id)
    return success_response(MarketOut.from_domain(market).model_dump(), request)


@router.post("")
async def create_market(
    body: CreateMarketRequest,
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Any, Depends(get_ledger_session)],
) -> ApiResponse:
    market = await _engine.create_market(db, current_user.id, body.to_draft())
    return success_response(MarketOut.from_domain(market).model_dump(), request)


@router.post("/{market_id}/join")
async def join_market(
    market_id: int,
    body: JoinMarketRequest,
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Any, Depends(get_ledger_session)],
) -> ApiResponse:
    market = await _engine.join_market(db, current_user.id, market_id, body.payment_signature)
    return success_response(MarketOut.from_domain(market).model_dump(), request)


@router.post("/{market_id}/cancel")
async def cancel_market(
    market_id: int,
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Any, Depends(get_ledger_session)],
) -> ApiResponse:
    result = await _engine.cancel_market(db, current_user.id, market_id)
    data = CancellationResponse(
        market=MarketOut.from_domain(result.market),
        refund=TransactionOut.from_domain(result.refund),
    )
    return success_response(data.model_dump(), request)
