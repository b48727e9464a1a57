# src/bm_order/application/service.py
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_common.cents import price_to_cents
from src.bm_common.errors import (
    OrderForbiddenError,
    OrderNotFoundError,
    PriceOutOfRangeError,
)
from src.bm_matching.application.service import get_matching_engine
from src.bm_order.application.schemas import (
    CancelOrderResponse,
    OrderListResponse,
    OrderResponse,
    PlaceOrderRequest,
    PlaceOrderResponse,
    TradeOut,
)
from src.bm_order.infrastructure.persistence import OrderRepository

_repo = OrderRepository()


async def place_order(req: PlaceOrderRequest, user_id: str) -> PlaceOrderResponse:
    try:
        price_cents = price_to_cents(req.price_limit)
    except ValueError:
        raise PriceOutOfRangeError(req.price_limit) from None

    engine = get_matching_engine()
    result = await engine.submit_order(
        user_id=user_id,
        market_id=req.market_id,
        side=req.side,
        price_cents=price_cents,
        amount=req.amount_cents,
    )
    resting = result.resting_order
    return PlaceOrderResponse(
        order=OrderResponse.from_domain(result.order),
        trades=[TradeOut.from_domain(t) for t in result.trades],
        resting_order=OrderResponse.from_domain(resting) if resting else None,
    )


async def cancel_order(order_id: str, user_id: str) -> CancelOrderResponse:
    engine = get_matching_engine()
    result = await engine.cancel_order(user_id, order_id)
    return CancelOrderResponse(
        order_id=result.order_id, refunded_amount=result.refunded_amount
    )


async def get_order(order_id: str, user_id: str, db: AsyncSession) -> OrderResponse:
    order = await _repo.get_by_id(order_id, db)
    if order is None:
        raise OrderNotFoundError(order_id)
    if order.user_id != user_id:
        raise OrderForbiddenError(order_id)
    return OrderResponse.from_domain(order)


async def list_orders(
    user_id: str,
    market_id: str | None,
    status: str | None,
    limit: int,
    cursor: str | None,
    db: AsyncSession,
) -> OrderListResponse:
    statuses = [status] if status else None
    orders = await _repo.list_by_user(
        user_id=user_id,
        market_id=market_id,
        statuses=statuses,
        limit=limit + 1,
        cursor_id=cursor,
        db=db,
    )
    has_more = len(orders) > limit
    if has_more:
        orders = orders[:limit]
    next_cursor = orders[-1].id if has_more and orders else None
    return OrderListResponse(
        items=[OrderResponse.from_domain(o) for o in orders],
        next_cursor=next_cursor,
        has_more=has_more,
    )
