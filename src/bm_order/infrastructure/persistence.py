# src/bm_order/infrastructure/persistence.py
"""OrderRepository — raw SQL persistence implementation.

The counter-order query is the order book read of the matching engine: it
locks every eligible resting row (FOR UPDATE) in book priority
price ASC, created_at ASC, id ASC, served by ix_orders_book.
"""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_common.enums import OrderSide
from src.bm_order.domain.models import Order

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_INSERT_ORDER_SQL = text("""
    INSERT INTO orders (id, market_id, user_id, side, price_cents,
        original_amount, remaining_amount, filled_amount, status,
        created_at, updated_at, filled_at)
    VALUES (:id, :market_id, :user_id, :side, :price_cents,
        :original_amount, :remaining_amount, :filled_amount, :status,
        :created_at, :created_at, :filled_at)
""")

_UPDATE_ORDER_SQL = text("""
    UPDATE orders
    SET status = :status,
        remaining_amount = :remaining_amount,
        filled_amount = :filled_amount,
        filled_at = :filled_at,
        cancelled_at = :cancelled_at,
        updated_at = NOW()
    WHERE id = :id
""")

_SELECT_COLUMNS = """
    id, market_id, user_id, side, price_cents,
    original_amount, remaining_amount, filled_amount, status,
    created_at, updated_at, filled_at, cancelled_at
"""

_GET_ORDER_BY_ID_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders WHERE id = :id
""")

_GET_ORDER_BY_ID_FOR_UPDATE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders WHERE id = :id
    FOR UPDATE
""")

_LIST_COUNTER_ORDERS_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders
    WHERE market_id = :market_id
      AND side = :side
      AND status IN ('OPEN', 'PARTIALLY_FILLED')
      AND price_cents <= :max_price
    ORDER BY price_cents ASC, created_at ASC, id ASC
    FOR UPDATE
""")

_LIST_RESTING_BY_MARKET_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders
    WHERE market_id = :market_id
      AND status IN ('OPEN', 'PARTIALLY_FILLED')
    ORDER BY id
    FOR UPDATE
""")

_SUM_RESTING_BY_USER_SQL = text("""
    SELECT COALESCE(SUM(remaining_amount), 0) AS locked
    FROM orders
    WHERE user_id = :user_id
      AND status IN ('OPEN', 'PARTIALLY_FILLED')
""")

_DELETE_BY_MARKET_SQL = text("DELETE FROM orders WHERE market_id = :market_id")

_LIST_ORDERS_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders
    WHERE user_id = :user_id
      AND (CAST(:market_id AS TEXT) IS NULL OR market_id = :market_id)
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < :cursor_id)
      AND (CAST(:statuses_csv AS TEXT) IS NULL
           OR status = ANY(string_to_array(CAST(:statuses_csv AS TEXT), ',')))
    ORDER BY id DESC
    LIMIT :limit
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_order(row: Any) -> Order:
    """Convert a DB result row to an Order domain object."""
    return Order(
        id=row.id,
        market_id=row.market_id,
        user_id=row.user_id,
        side=row.side,
        price_cents=row.price_cents,
        original_amount=row.original_amount,
        remaining_amount=row.remaining_amount,
        filled_amount=row.filled_amount,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
        filled_at=row.filled_at,
        cancelled_at=row.cancelled_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderRepository:
    """Concrete implementation of OrderRepositoryProtocol using raw SQL."""

    async def save(self, order: Order, db: AsyncSession) -> None:
        await db.execute(
            _INSERT_ORDER_SQL,
            {
                "id": order.id,
                "market_id": order.market_id,
                "user_id": order.user_id,
                "side": order.side,
                "price_cents": order.price_cents,
                "original_amount": order.original_amount,
                "remaining_amount": order.remaining_amount,
                "filled_amount": order.filled_amount,
                "status": order.status,
                "created_at": order.created_at,
                "filled_at": order.filled_at,
            },
        )

    async def update(self, order: Order, db: AsyncSession) -> None:
        await db.execute(
            _UPDATE_ORDER_SQL,
            {
                "id": order.id,
                "status": order.status,
                "remaining_amount": order.remaining_amount,
                "filled_amount": order.filled_amount,
                "filled_at": order.filled_at,
                "cancelled_at": order.cancelled_at,
            },
        )

    async def get_by_id(self, order_id: str, db: AsyncSession) -> Order | None:
        row = (await db.execute(_GET_ORDER_BY_ID_SQL, {"id": order_id})).fetchone()
        return _row_to_order(row) if row else None

    async def get_by_id_for_update(
        self, order_id: str, db: AsyncSession
    ) -> Order | None:
        row = (
            await db.execute(_GET_ORDER_BY_ID_FOR_UPDATE_SQL, {"id": order_id})
        ).fetchone()
        return _row_to_order(row) if row else None

    async def list_counter_orders_for_update(
        self, market_id: str, side: OrderSide, max_price: int, db: AsyncSession
    ) -> list[Order]:
        result = await db.execute(
            _LIST_COUNTER_ORDERS_SQL,
            {"market_id": market_id, "side": side, "max_price": max_price},
        )
        return [_row_to_order(row) for row in result.fetchall()]

    async def list_resting_by_market_for_update(
        self, market_id: str, db: AsyncSession
    ) -> list[Order]:
        result = await db.execute(_LIST_RESTING_BY_MARKET_SQL, {"market_id": market_id})
        return [_row_to_order(row) for row in result.fetchall()]

    async def sum_resting_by_user(self, user_id: str, db: AsyncSession) -> int:
        row = (
            await db.execute(_SUM_RESTING_BY_USER_SQL, {"user_id": user_id})
        ).fetchone()
        return int(row.locked) if row else 0

    async def delete_by_market(self, market_id: str, db: AsyncSession) -> int:
        result = await db.execute(_DELETE_BY_MARKET_SQL, {"market_id": market_id})
        return result.rowcount or 0

    async def list_by_user(
        self,
        user_id: str,
        market_id: str | None,
        statuses: list[str] | None,
        limit: int,
        cursor_id: str | None,
        db: AsyncSession,
    ) -> list[Order]:
        statuses_csv = ",".join(statuses) if statuses else None
        result = await db.execute(
            _LIST_ORDERS_SQL,
            {
                "user_id": user_id,
                "market_id": market_id,
                "cursor_id": cursor_id,
                "limit": limit,
                "statuses_csv": statuses_csv,
            },
        )
        rows = result.fetchall()
        return [_row_to_order(row) for row in rows]
