"""FastAPI dependency: get_current_user.

Identity is the wallet public key sent in the X-Wallet-Public-Key header.
The header is trusted as-is (no signature challenge); the user row is
created on first sight. Handlers receive the resolved User explicitly and
pass its id down to the engine; nothing reads identity from ambient state.

Usage in any protected router:
    from src.bm_gateway.auth.dependencies import get_current_user

    @router.get("/protected")
    async def protected(user: User = Depends(get_current_user)):
        ...
"""

from typing import Any

from fastapi import Depends, Header

from config.settings import settings
from src.bm_account.application.service import AccountApplicationService
from src.bm_admin.domain.policy import AccessPolicy, build_access_policy
from src.bm_common.errors import AdminRequiredError, InvalidFieldError, WalletIdentityMissingError
from src.bm_ledger.domain.models import User
from src.bm_ledger.infrastructure.backend import get_ledger_session

WALLET_HEADER = "X-Wallet-Public-Key"
_MAX_WALLET_LENGTH = 64

_accounts = AccountApplicationService()
_policy: AccessPolicy = build_access_policy(settings.ADMIN_POLICY, settings.ADMIN_WALLETS)


def get_access_policy() -> AccessPolicy:
    return _policy


async def get_current_user(
    wallet: str | None = Header(None, alias=WALLET_HEADER),
    db: Any = Depends(get_ledger_session),
) -> User:
    """Resolve the caller's wallet into a User row.

    Raises HTTP 401 (WalletIdentityMissingError) when the header is absent.
    """
    if wallet is None or not wallet.strip():
        raise WalletIdentityMissingError()
    wallet = wallet.strip()
    if len(wallet) > _MAX_WALLET_LENGTH:
        raise InvalidFieldError("wallet", f"longer than {_MAX_WALLET_LENGTH} characters")
    return await _accounts.resolve_user(db, wallet)


async def require_admin(
    current_user: User = Depends(get_current_user),
    policy: AccessPolicy = Depends(get_access_policy),
) -> User:
    """Raises HTTP 403 (AdminRequiredError) unless the policy admits the caller."""
    if not policy.is_admin(current_user):
        raise AdminRequiredError()
    return current_user
