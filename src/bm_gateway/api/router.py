"""bm_gateway REST endpoints — caller identity."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.bm_account.application.schemas import UserOut
from src.bm_admin.domain.policy import AccessPolicy
from src.bm_common.response import ApiResponse, success_response
from src.bm_gateway.auth.dependencies import get_access_policy, get_current_user
from src.bm_ledger.domain.models import User

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/user")
async def get_user(
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    policy: Annotated[AccessPolicy, Depends(get_access_policy)],
) -> ApiResponse:
    data = UserOut.from_domain(current_user, is_admin=policy.is_admin(current_user))
    return success_response(data.model_dump(), request)
