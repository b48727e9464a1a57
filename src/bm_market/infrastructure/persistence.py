"""MarketRepository — concrete implementation of MarketRepositoryProtocol.

All queries use raw text() SQL (no ORM).
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_market.domain.models import Market, OrderBookSnapshot, PriceLevel

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_COLUMNS = """
    id, title, description, creator_id, status,
    last_yes_price, last_no_price,
    total_volume, total_yes_shares, total_no_shares,
    resolution_outcome, resolution_note, resolution_date, resolved_at,
    created_at, updated_at
"""

_GET_MARKET_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM markets
    WHERE id = :market_id
""")

_GET_MARKET_FOR_UPDATE_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM markets
    WHERE id = :market_id
    FOR UPDATE
""")

_LIST_MARKETS_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM markets
    WHERE
        (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
        AND (
            CAST(:cursor_ts AS TIMESTAMPTZ) IS NULL
            OR created_at < CAST(:cursor_ts AS TIMESTAMPTZ)
            OR (
                created_at = CAST(:cursor_ts AS TIMESTAMPTZ)
                AND id < CAST(:cursor_id AS TEXT)
            )
        )
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")

_INSERT_MARKET_SQL = text(f"""
    INSERT INTO markets (id, title, description, creator_id, status, resolution_date)
    VALUES (:id, :title, :description, :creator_id, :status, :resolution_date)
    RETURNING {_COLUMNS}
""")

_UPDATE_STATUS_SQL = text("""
    UPDATE markets SET status = :status, updated_at = NOW()
    WHERE id = :market_id
""")

_SAVE_TRADE_STATS_SQL = text("""
    UPDATE markets
    SET last_yes_price = :last_yes_price,
        last_no_price = :last_no_price,
        total_volume = :total_volume,
        total_yes_shares = :total_yes_shares,
        total_no_shares = :total_no_shares,
        updated_at = NOW()
    WHERE id = :id
""")

_MARK_RESOLVED_SQL = text("""
    UPDATE markets
    SET status = 'RESOLVED',
        resolution_outcome = :outcome,
        resolution_note = :note,
        resolved_at = :resolved_at,
        updated_at = NOW()
    WHERE id = :market_id
""")

_DELETE_MARKET_SQL = text("DELETE FROM markets WHERE id = :market_id")

_ORDERBOOK_AGGREGATE_SQL = text("""
    SELECT side, price_cents,
           SUM(remaining_amount) AS total_amount,
           COUNT(*) AS order_count
    FROM orders
    WHERE market_id = :market_id
      AND status IN ('OPEN', 'PARTIALLY_FILLED')
    GROUP BY side, price_cents
    ORDER BY price_cents DESC
""")

# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_market(row: Any) -> Market:
    return Market(
        id=row.id,
        title=row.title,
        description=row.description,
        creator_id=row.creator_id,
        status=row.status,
        last_yes_price=row.last_yes_price,
        last_no_price=row.last_no_price,
        total_volume=row.total_volume,
        total_yes_shares=row.total_yes_shares,
        total_no_shares=row.total_no_shares,
        resolution_outcome=row.resolution_outcome,
        resolution_note=row.resolution_note,
        resolution_date=row.resolution_date,
        resolved_at=row.resolved_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class MarketRepository:
    async def get_market_by_id(
        self, db: AsyncSession, market_id: str
    ) -> Market | None:
        row = (await db.execute(_GET_MARKET_SQL, {"market_id": market_id})).fetchone()
        return _row_to_market(row) if row else None

    async def get_market_for_update(
        self, db: AsyncSession, market_id: str
    ) -> Market | None:
        row = (
            await db.execute(_GET_MARKET_FOR_UPDATE_SQL, {"market_id": market_id})
        ).fetchone()
        return _row_to_market(row) if row else None

    async def list_markets(
        self,
        db: AsyncSession,
        status: str | None,
        cursor_ts: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Market]:
        # asyncpg requires a real datetime object for TIMESTAMPTZ parameters
        cursor_ts_dt: datetime | None = None
        if cursor_ts is not None:
            cursor_ts_dt = datetime.fromisoformat(cursor_ts)

        result = await db.execute(
            _LIST_MARKETS_SQL,
            {
                "status": status,
                "cursor_ts": cursor_ts_dt,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_market(row) for row in result.fetchall()]

    async def create(self, db: AsyncSession, market: Market) -> Market:
        row = (
            await db.execute(
                _INSERT_MARKET_SQL,
                {
                    "id": market.id,
                    "title": market.title,
                    "description": market.description,
                    "creator_id": market.creator_id,
                    "status": market.status,
                    "resolution_date": market.resolution_date,
                },
            )
        ).fetchone()
        return _row_to_market(row)

    async def update_status(
        self, db: AsyncSession, market_id: str, status: str
    ) -> None:
        await db.execute(_UPDATE_STATUS_SQL, {"market_id": market_id, "status": status})

    async def save_trade_stats(self, db: AsyncSession, market: Market) -> None:
        await db.execute(
            _SAVE_TRADE_STATS_SQL,
            {
                "id": market.id,
                "last_yes_price": market.last_yes_price,
                "last_no_price": market.last_no_price,
                "total_volume": market.total_volume,
                "total_yes_shares": market.total_yes_shares,
                "total_no_shares": market.total_no_shares,
            },
        )

    async def mark_resolved(
        self,
        db: AsyncSession,
        market_id: str,
        outcome: str,
        note: str | None,
        resolved_at: datetime,
    ) -> None:
        await db.execute(
            _MARK_RESOLVED_SQL,
            {
                "market_id": market_id,
                "outcome": outcome,
                "note": note,
                "resolved_at": resolved_at,
            },
        )

    async def delete(self, db: AsyncSession, market_id: str) -> None:
        await db.execute(_DELETE_MARKET_SQL, {"market_id": market_id})

    async def get_orderbook_snapshot(
        self, db: AsyncSession, market: Market, levels: int
    ) -> OrderBookSnapshot:
        rows = (
            await db.execute(_ORDERBOOK_AGGREGATE_SQL, {"market_id": market.id})
        ).fetchall()

        yes_levels: list[PriceLevel] = []
        no_levels: list[PriceLevel] = []
        for row in rows:
            level = PriceLevel(
                price_cents=row.price_cents,
                total_amount=int(row.total_amount),
                order_count=int(row.order_count),
            )
            if row.side == "YES":
                yes_levels.append(level)
            else:
                no_levels.append(level)

        # best (highest) price first on both sides, truncated to `levels`
        yes_levels.sort(key=lambda lv: lv.price_cents, reverse=True)
        no_levels.sort(key=lambda lv: lv.price_cents, reverse=True)

        return OrderBookSnapshot(
            market_id=market.id,
            yes_levels=yes_levels[:levels],
            no_levels=no_levels[:levels],
            last_yes_price=market.last_yes_price,
            last_no_price=market.last_no_price,
            updated_at=datetime.now(UTC),
        )
