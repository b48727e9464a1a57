from dataclasses import dataclass
from datetime import datetime

from src.bm_common.cents import complement_price
from src.bm_common.enums import OrderSide
from src.bm_order.domain.models import Order


@dataclass(frozen=True)
class Fill:
    """Single match between the taker and one resting counter-order.

    `amount` is both the currency filled and the share units minted per side.
    """

    maker_order_id: str
    maker_user_id: str
    maker_side: OrderSide
    maker_price: int
    amount: int
    taker_cost: int  # cents debited from the taker's balance
    maker_cost: int  # cents of the maker's reservation consumed


@dataclass
class Trade:
    """Immutable execution record, one per fill."""

    id: str
    market_id: str
    taker_order_id: str
    maker_order_id: str
    taker_side: OrderSide
    yes_user_id: str
    no_user_id: str
    yes_price: int
    no_price: int
    shares_traded: int
    total_amount: int
    executed_at: datetime

    @classmethod
    def from_fill(
        cls, trade_id: str, taker: Order, fill: Fill, executed_at: datetime
    ) -> "Trade":
        # Prices come from the taker's limit; the pair always sums to 100.
        if taker.side is OrderSide.YES:
            yes_price = taker.price_cents
            yes_user, no_user = taker.user_id, fill.maker_user_id
        else:
            yes_price = complement_price(taker.price_cents)
            yes_user, no_user = fill.maker_user_id, taker.user_id
        return cls(
            id=trade_id,
            market_id=taker.market_id,
            taker_order_id=taker.id,
            maker_order_id=fill.maker_order_id,
            taker_side=taker.side,
            yes_user_id=yes_user,
            no_user_id=no_user,
            yes_price=yes_price,
            no_price=complement_price(yes_price),
            shares_traded=fill.amount,
            total_amount=fill.amount,
            executed_at=executed_at,
        )


@dataclass
class MatchResult:
    """Outcome of submitOrder.

    `order` is the taker record the trades reference. `resting_order` is the
    OPEN order left in the book for the unfilled remainder; when nothing
    filled it is the same row as `order`.
    """

    order: Order
    trades: list[Trade]
    resting_order: Order | None = None


@dataclass(frozen=True)
class CancelResult:
    order_id: str
    refunded_amount: int
