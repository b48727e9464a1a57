"""Trade Log Protocol — the matching engine and admin only append and purge."""
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_matching.domain.models import Trade


class TradesRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, trade: Trade) -> None: ...

    async def delete_by_market(self, db: AsyncSession, market_id: str) -> int: ...
