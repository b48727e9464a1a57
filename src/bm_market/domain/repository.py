# src/bm_market/domain/repository.py
"""Repository Protocol — dependency inversion for testability.

Unit tests inject a fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_market.domain.models import Market, OrderBookSnapshot


class MarketRepositoryProtocol(Protocol):
    async def get_market_by_id(
        self, db: AsyncSession, market_id: str
    ) -> Market | None: ...

    async def get_market_for_update(
        self, db: AsyncSession, market_id: str
    ) -> Market | None: ...

    async def list_markets(
        self,
        db: AsyncSession,
        status: str | None,
        cursor_ts: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Market]: ...

    async def create(self, db: AsyncSession, market: Market) -> Market: ...

    async def update_status(
        self, db: AsyncSession, market_id: str, status: str
    ) -> None: ...

    async def save_trade_stats(self, db: AsyncSession, market: Market) -> None: ...

    async def mark_resolved(
        self,
        db: AsyncSession,
        market_id: str,
        outcome: str,
        note: str | None,
        resolved_at: datetime,
    ) -> None: ...

    async def delete(self, db: AsyncSession, market_id: str) -> None: ...

    async def get_orderbook_snapshot(
        self, db: AsyncSession, market: Market, levels: int
    ) -> OrderBookSnapshot: ...
