# src/bm_clearing/infrastructure/trades_repository.py
"""Trade Log persistence — append-only inserts plus market history reads."""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_matching.domain.models import Trade

_INSERT_TRADE_SQL = text("""
    INSERT INTO trades (
        id, market_id,
        taker_order_id, maker_order_id, taker_side,
        yes_user_id, no_user_id,
        yes_price, no_price,
        shares_traded, total_amount,
        executed_at
    ) VALUES (
        :id, :market_id,
        :taker_order_id, :maker_order_id, :taker_side,
        :yes_user_id, :no_user_id,
        :yes_price, :no_price,
        :shares_traded, :total_amount,
        :executed_at
    )
""")

_LIST_BY_MARKET_SQL = text("""
    SELECT id, market_id, taker_order_id, maker_order_id, taker_side,
           yes_user_id, no_user_id, yes_price, no_price,
           shares_traded, total_amount, executed_at
    FROM trades
    WHERE market_id = :market_id
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < :cursor_id)
    ORDER BY executed_at DESC, id DESC
    LIMIT :limit
""")

_DELETE_BY_MARKET_SQL = text("DELETE FROM trades WHERE market_id = :market_id")


class TradesRepository:
    async def insert(self, db: AsyncSession, trade: Trade) -> None:
        """Insert one row into the trades table."""
        await db.execute(
            _INSERT_TRADE_SQL,
            {
                "id": trade.id,
                "market_id": trade.market_id,
                "taker_order_id": trade.taker_order_id,
                "maker_order_id": trade.maker_order_id,
                "taker_side": trade.taker_side,
                "yes_user_id": trade.yes_user_id,
                "no_user_id": trade.no_user_id,
                "yes_price": trade.yes_price,
                "no_price": trade.no_price,
                "shares_traded": trade.shares_traded,
                "total_amount": trade.total_amount,
                "executed_at": trade.executed_at,
            },
        )

    async def list_by_market(
        self,
        db: AsyncSession,
        market_id: str,
        limit: int,
        cursor_id: str | None,
    ) -> list[dict[str, Any]]:
        rows = (
            await db.execute(
                _LIST_BY_MARKET_SQL,
                {"market_id": market_id, "limit": limit, "cursor_id": cursor_id},
            )
        ).fetchall()
        return [_row_to_dict(r) for r in rows]

    async def delete_by_market(self, db: AsyncSession, market_id: str) -> int:
        result = await db.execute(_DELETE_BY_MARKET_SQL, {"market_id": market_id})
        return result.rowcount or 0


def _row_to_dict(row: Any) -> dict[str, Any]:
    return {
        "id": row.id,
        "market_id": row.market_id,
        "taker_order_id": row.taker_order_id,
        "maker_order_id": row.maker_order_id,
        "taker_side": row.taker_side,
        "yes_user_id": row.yes_user_id,
        "no_user_id": row.no_user_id,
        "yes_price": row.yes_price,
        "no_price": row.no_price,
        "shares_traded": row.shares_traded,
        "total_amount": row.total_amount,
        "executed_at": row.executed_at.isoformat() if row.executed_at else None,
    }
