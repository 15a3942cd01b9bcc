"""bm_account REST API — the caller's own dashboard data."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request

from src.bm_account.application.service import AccountApplicationService
from src.bm_common.response import ApiResponse, success_response
from src.bm_gateway.auth.dependencies import get_current_user
from src.bm_ledger.domain.models import User
from src.bm_ledger.infrastructure.backend import get_ledger_session

router = APIRouter(prefix="/user", tags=["user"])

_service = AccountApplicationService()


@router.get("/markets")
async def list_user_markets(
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Any, Depends(get_ledger_session)],
) -> ApiResponse:
    data = await _service.list_markets(db, current_user.id)
    return success_response(data.model_dump(), request)


@router.get("/transactions")
async def list_user_transactions(
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Any, Depends(get_ledger_session)],
) -> ApiResponse:
    data = await _service.list_transactions(db, current_user.id)
    return success_response(data.model_dump(), request)


@router.get("/balance")
async def get_balance(
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse:
    data = _service.get_balance(current_user)
    return success_response(data.model_dump(), request)
