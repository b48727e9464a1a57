"""Market status state machine.

    PROPOSED -> OPEN -> CLOSED -> RESOLVED
    OPEN -> RESOLVED
    PROPOSED -> REJECTED

RESOLVED and REJECTED are terminal.
"""

from src.bm_common.enums import MarketStatus
from src.bm_common.errors import InvalidTransitionError, MarketNotTradableError
from src.bm_market.domain.models import Market

ALLOWED_TRANSITIONS: dict[MarketStatus, frozenset[MarketStatus]] = {
    MarketStatus.PROPOSED: frozenset({MarketStatus.OPEN, MarketStatus.REJECTED}),
    MarketStatus.OPEN: frozenset({MarketStatus.CLOSED, MarketStatus.RESOLVED}),
    MarketStatus.CLOSED: frozenset({MarketStatus.RESOLVED}),
    MarketStatus.RESOLVED: frozenset(),
    MarketStatus.REJECTED: frozenset(),
}

RESOLVABLE_STATUSES = frozenset({MarketStatus.OPEN, MarketStatus.CLOSED})


def can_transition(current: MarketStatus, target: MarketStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[MarketStatus(current)]


def ensure_transition(current: MarketStatus, target: MarketStatus) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(MarketStatus(current).value, MarketStatus(target).value)


def ensure_tradable(market: Market) -> None:
    if market.status is not MarketStatus.OPEN:
        raise MarketNotTradableError(market.id, market.status.value)
