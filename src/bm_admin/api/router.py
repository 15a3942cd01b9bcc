# src/bm_admin/api/router.py
"""Admin REST API."""
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from src.bm_admin.application.service import AdminService
from src.bm_common.response import ApiResponse, success_response
from src.bm_gateway.auth.dependencies import get_current_user, require_admin
from src.bm_ledger.domain.models import User
from src.bm_ledger.infrastructure.backend import get_ledger_session

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


class SettleRequest(BaseModel):
    # Membership is checked by the engine so the error code stays stable (4001)
    settlement: str


@router.post("/markets/{market_id}/settle")
async def settle_market(
    market_id: int,
    body: SettleRequest,
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Any, Depends(get_ledger_session)],
) -> ApiResponse:
    result = await _service.settle_market(db, current_user.id, market_id, body.settlement)
    return success_response(result.model_dump(), request)


@router.get("/markets")
async def list_markets(
    request: Request,
    current_user: Annotated[User, Depends(require_admin)],
    db: Annotated[Any, Depends(get_ledger_session)],
    status: str | None = Query(None),
) -> ApiResponse:
    result = await _service.list_markets(db, status)
    return success_response(result.model_dump(), request)


@router.get("/markets/pending")
async def list_pending_markets(
    request: Request,
    current_user: Annotated[User, Depends(require_admin)],
    db: Annotated[Any, Depends(get_ledger_session)],
) -> ApiResponse:
    result = await _service.list_pending_settlement(db)
    return success_response(result.model_dump(), request)


@router.get("/refunds")
async def list_refunds(
    request: Request,
    current_user: Annotated[User, Depends(require_admin)],
    db: Annotated[Any, Depends(get_ledger_session)],
    pending_only: bool = Query(True),
) -> ApiResponse:
    items = await _service.list_refunds(db, pending_only)
    return success_response({"items": items}, request)
