"""Order domain model — pure dataclass, no SQLAlchemy dependency.

State machine:
    OPEN -> PARTIALLY_FILLED -> FILLED
    OPEN | PARTIALLY_FILLED -> CANCELLED
FILLED and CANCELLED are terminal.
"""
from dataclasses import dataclass
from datetime import datetime

from src.bm_common.enums import RESTING_ORDER_STATUSES, OrderSide, OrderStatus


@dataclass
class Order:
    id: str
    market_id: str
    user_id: str
    side: OrderSide
    price_cents: int  # 1-99
    # Amount tracking (cents); original == remaining + filled at all times
    original_amount: int
    remaining_amount: int
    filled_amount: int = 0
    status: OrderStatus = OrderStatus.OPEN
    created_at: datetime | None = None
    updated_at: datetime | None = None
    filled_at: datetime | None = None
    cancelled_at: datetime | None = None

    def __post_init__(self) -> None:
        self.side = OrderSide(self.side)
        self.status = OrderStatus(self.status)
        if self.original_amount != self.remaining_amount + self.filled_amount:
            raise ValueError(
                f"Order {self.id}: original {self.original_amount} != "
                f"remaining {self.remaining_amount} + filled {self.filled_amount}"
            )

    @property
    def is_resting(self) -> bool:
        return self.status.value in RESTING_ORDER_STATUSES

    @property
    def is_cancellable(self) -> bool:
        return self.is_resting

    @property
    def priority_key(self) -> tuple[int, datetime, str]:
        """Book priority among same-side orders: price, then time, then id."""
        if self.created_at is None:
            raise ValueError(f"Order {self.id} has no created_at and cannot be ranked")
        return (self.price_cents, self.created_at, self.id)

    def apply_fill(self, amount: int, now: datetime) -> None:
        if amount <= 0 or amount > self.remaining_amount:
            raise ValueError(
                f"Fill of {amount} invalid for order {self.id} "
                f"with remaining {self.remaining_amount}"
            )
        if self.status in (OrderStatus.FILLED, OrderStatus.CANCELLED):
            raise ValueError(f"Order {self.id} is {self.status.value} and cannot fill")
        self.remaining_amount -= amount
        self.filled_amount += amount
        self.updated_at = now
        if self.remaining_amount == 0:
            self.status = OrderStatus.FILLED
            self.filled_at = now
        else:
            self.status = OrderStatus.PARTIALLY_FILLED

    def split_remainder(self, new_id: str, now: datetime) -> "Order":
        """Close a partially filled taker at its filled part; the rest becomes a new OPEN order.

        Afterwards this order is FILLED with original == filled, and the
        returned order starts fresh with original == remaining, filled == 0.
        """
        if self.status is not OrderStatus.PARTIALLY_FILLED:
            raise ValueError(f"Order {self.id} is {self.status.value}, nothing to split")
        remainder = Order(
            id=new_id,
            market_id=self.market_id,
            user_id=self.user_id,
            side=self.side,
            price_cents=self.price_cents,
            original_amount=self.remaining_amount,
            remaining_amount=self.remaining_amount,
            created_at=now,
            updated_at=now,
        )
        self.original_amount = self.filled_amount
        self.remaining_amount = 0
        self.status = OrderStatus.FILLED
        self.filled_at = now
        self.updated_at = now
        return remainder

    def cancel(self, now: datetime) -> int:
        """Mark cancelled and return the refundable remainder.

        remaining_amount is kept as the historical record of what was refunded.
        """
        if not self.is_cancellable:
            raise ValueError(f"Order {self.id} is {self.status.value}")
        self.status = OrderStatus.CANCELLED
        self.cancelled_at = now
        self.updated_at = now
        return self.remaining_amount
