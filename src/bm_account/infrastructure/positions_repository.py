# src/bm_account/infrastructure/positions_repository.py
"""Position Ledger persistence — one row per (user, market), keyed "{user_id}_{market_id}".

Writers read the rows they will touch FOR UPDATE first, apply PositionDelta
values in memory, then flush each touched row once with `save`.
"""
from collections.abc import Iterable
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_account.domain.models import Position, position_id

_COLUMNS = """
    user_id, market_id,
    yes_shares, no_shares, yes_cost_basis, no_cost_basis,
    current_value, unrealized_pnl, settled, updated_at
"""

_GET_MANY_FOR_UPDATE_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM positions
    WHERE market_id = :market_id AND user_id = ANY(:user_ids)
    ORDER BY id
    FOR UPDATE
""")

_LIST_BY_MARKET_FOR_UPDATE_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM positions
    WHERE market_id = :market_id
    ORDER BY id
    FOR UPDATE
""")

_UPSERT_SQL = text("""
    INSERT INTO positions
        (id, user_id, market_id,
         yes_shares, no_shares, yes_cost_basis, no_cost_basis)
    VALUES
        (:id, :user_id, :market_id,
         :yes_shares, :no_shares, :yes_cost_basis, :no_cost_basis)
    ON CONFLICT (id) DO UPDATE
        SET yes_shares = EXCLUDED.yes_shares,
            no_shares = EXCLUDED.no_shares,
            yes_cost_basis = EXCLUDED.yes_cost_basis,
            no_cost_basis = EXCLUDED.no_cost_basis,
            updated_at = NOW()
""")

_FINALIZE_SQL = text("""
    UPDATE positions
    SET current_value = :current_value,
        unrealized_pnl = :unrealized_pnl,
        settled = TRUE,
        updated_at = NOW()
    WHERE id = :id
""")

_DELETE_BY_MARKET_SQL = text("DELETE FROM positions WHERE market_id = :market_id")

_LIST_BY_USER_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM positions
    WHERE user_id = :user_id
      AND (yes_shares > 0 OR no_shares > 0)
    ORDER BY updated_at DESC, market_id
""")

_GET_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM positions
    WHERE id = :id
""")


def _row_to_position(row: Any) -> Position:
    return Position(
        user_id=row.user_id,
        market_id=row.market_id,
        yes_shares=row.yes_shares,
        no_shares=row.no_shares,
        yes_cost_basis=row.yes_cost_basis,
        no_cost_basis=row.no_cost_basis,
        current_value=row.current_value,
        unrealized_pnl=row.unrealized_pnl,
        settled=row.settled,
        updated_at=row.updated_at,
    )


class PositionRepository:
    async def get_many_for_update(
        self, db: AsyncSession, market_id: str, user_ids: Iterable[str]
    ) -> dict[str, Position]:
        ids = sorted(set(user_ids))
        if not ids:
            return {}
        rows = (
            await db.execute(
                _GET_MANY_FOR_UPDATE_SQL, {"market_id": market_id, "user_ids": ids}
            )
        ).fetchall()
        return {row.user_id: _row_to_position(row) for row in rows}

    async def list_by_market_for_update(
        self, db: AsyncSession, market_id: str
    ) -> list[Position]:
        rows = (
            await db.execute(_LIST_BY_MARKET_FOR_UPDATE_SQL, {"market_id": market_id})
        ).fetchall()
        return [_row_to_position(r) for r in rows]

    async def save(self, db: AsyncSession, position: Position) -> None:
        await db.execute(
            _UPSERT_SQL,
            {
                "id": position.id,
                "user_id": position.user_id,
                "market_id": position.market_id,
                "yes_shares": position.yes_shares,
                "no_shares": position.no_shares,
                "yes_cost_basis": position.yes_cost_basis,
                "no_cost_basis": position.no_cost_basis,
            },
        )

    async def finalize(self, db: AsyncSession, position: Position) -> None:
        await db.execute(
            _FINALIZE_SQL,
            {
                "id": position.id,
                "current_value": position.current_value,
                "unrealized_pnl": position.unrealized_pnl,
            },
        )

    async def delete_by_market(self, db: AsyncSession, market_id: str) -> int:
        result = await db.execute(_DELETE_BY_MARKET_SQL, {"market_id": market_id})
        return result.rowcount or 0

    async def list_by_user(self, db: AsyncSession, user_id: str) -> list[Position]:
        rows = (await db.execute(_LIST_BY_USER_SQL, {"user_id": user_id})).fetchall()
        return [_row_to_position(r) for r in rows]

    async def get(
        self, db: AsyncSession, user_id: str, market_id: str
    ) -> Position | None:
        row = (
            await db.execute(_GET_SQL, {"id": position_id(user_id, market_id)})
        ).fetchone()
        return _row_to_position(row) if row else None
