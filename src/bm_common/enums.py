"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class MarketStatus(str, Enum):
    PROPOSED = "PROPOSED"
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    RESOLVED = "RESOLVED"
    REJECTED = "REJECTED"


class OrderSide(str, Enum):
    YES = "YES"
    NO = "NO"

    @property
    def opposite(self) -> "OrderSide":
        return OrderSide.NO if self is OrderSide.YES else OrderSide.YES


class OrderStatus(str, Enum):
    OPEN = "OPEN"
    PARTIALLY_FILLED = "PARTIALLY_FILLED"
    FILLED = "FILLED"
    CANCELLED = "CANCELLED"


RESTING_ORDER_STATUSES: tuple[str, ...] = (
    OrderStatus.OPEN.value,
    OrderStatus.PARTIALLY_FILLED.value,
)


class ResolutionOutcome(str, Enum):
    YES = "YES"
    NO = "NO"
    INVALID = "INVALID"


class LedgerEntryType(str, Enum):
    DEPOSIT = "DEPOSIT"
    # Order reservation / release (user side)
    ORDER_RESERVE = "ORDER_RESERVE"
    ORDER_REFUND = "ORDER_REFUND"
    # Taker pays its own limit per share at execution
    TRADE_PAYMENT = "TRADE_PAYMENT"
    # Resolution / admin deletion
    SETTLEMENT_PAYOUT = "SETTLEMENT_PAYOUT"
    MARKET_DELETE_REFUND = "MARKET_DELETE_REFUND"
