# src/bm_order/application/schemas.py
from decimal import Decimal

from pydantic import BaseModel, Field

from src.bm_common.cents import cents_to_price
from src.bm_common.datetime_utils import iso_or_none
from src.bm_matching.domain.models import Trade
from src.bm_order.domain.models import Order


class PlaceOrderRequest(BaseModel):
    market_id: str = Field(..., min_length=1)
    # range checks live in the engine: 4002 side, 4001 price, 2002 amount
    side: str = Field(..., description="YES or NO")
    price_limit: Decimal = Field(..., description="Limit price strictly inside (0, 1)")
    amount_cents: int = Field(..., description="Currency committed, in cents")


class TradeOut(BaseModel):
    id: str
    maker_order_id: str
    yes_user_id: str
    no_user_id: str
    yes_price: int
    no_price: int
    shares_traded: int
    total_amount: int
    executed_at: str

    @classmethod
    def from_domain(cls, trade: Trade) -> "TradeOut":
        return cls(
            id=trade.id,
            maker_order_id=trade.maker_order_id,
            yes_user_id=trade.yes_user_id,
            no_user_id=trade.no_user_id,
            yes_price=trade.yes_price,
            no_price=trade.no_price,
            shares_traded=trade.shares_traded,
            total_amount=trade.total_amount,
            executed_at=trade.executed_at.isoformat(),
        )


class OrderResponse(BaseModel):
    id: str
    market_id: str
    user_id: str
    side: str
    price_cents: int
    price: str
    original_amount: int
    remaining_amount: int
    filled_amount: int
    status: str
    created_at: str | None = None
    updated_at: str | None = None
    filled_at: str | None = None
    cancelled_at: str | None = None

    @classmethod
    def from_domain(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            market_id=order.market_id,
            user_id=order.user_id,
            side=order.side.value,
            price_cents=order.price_cents,
            price=cents_to_price(order.price_cents),
            original_amount=order.original_amount,
            remaining_amount=order.remaining_amount,
            filled_amount=order.filled_amount,
            status=order.status.value,
            created_at=iso_or_none(order.created_at),
            updated_at=iso_or_none(order.updated_at),
            filled_at=iso_or_none(order.filled_at),
            cancelled_at=iso_or_none(order.cancelled_at),
        )


class PlaceOrderResponse(BaseModel):
    order: OrderResponse
    trades: list[TradeOut]
    resting_order: OrderResponse | None


class CancelOrderResponse(BaseModel):
    order_id: str
    refunded_amount: int


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    next_cursor: str | None
    has_more: bool
