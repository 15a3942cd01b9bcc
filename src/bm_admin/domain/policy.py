"""Admin access policy — a single injected predicate.

Two sources of admin rights exist: a fixed wallet allow-list and a persisted
per-user flag. Which one is authoritative is a deployment decision
(ADMIN_POLICY), never inferred at call sites.
"""

from collections.abc import Iterable
from typing import Protocol

from src.bm_ledger.domain.models import User


class AccessPolicy(Protocol):
    def is_admin(self, user: User) -> bool: ...


class AllowListPolicy:
    def __init__(self, wallets: Iterable[str]) -> None:
        self._wallets = frozenset(wallets)

    def is_admin(self, user: User) -> bool:
        return user.id in self._wallets


class UserFlagPolicy:
    def is_admin(self, user: User) -> bool:
        return user.is_admin


def build_access_policy(policy: str, wallets: Iterable[str]) -> AccessPolicy:
    if policy == "allowlist":
        return AllowListPolicy(wallets)
    if policy == "flag":
        return UserFlagPolicy()
    raise ValueError(f"Unknown ADMIN_POLICY: {policy!r} (expected 'allowlist' or 'flag')")
