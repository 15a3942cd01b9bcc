"""Market lifecycle transitions.

    open --join--> active --settle--> settled
    open --cancel--> cancelled

settled and cancelled are terminal. The store's conditional updates enforce
the same table under concurrency; this module is the readable source of it.
"""

from src.bm_common.enums import MarketStatus

_TRANSITIONS: dict[MarketStatus, frozenset[MarketStatus]] = {
    MarketStatus.OPEN: frozenset({MarketStatus.ACTIVE, MarketStatus.CANCELLED}),
    MarketStatus.ACTIVE: frozenset({MarketStatus.SETTLED}),
    MarketStatus.SETTLED: frozenset(),
    MarketStatus.CANCELLED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    return MarketStatus(target) in _TRANSITIONS[MarketStatus(current)]

