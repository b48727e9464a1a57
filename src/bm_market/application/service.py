"""MarketApplicationService — thin composition layer.

All methods are read-only; no commit/rollback needed.
The caller (router) passes db session; service delegates to repositories.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_clearing.application.trades_schemas import TradeListResponse, TradeResponse
from src.bm_clearing.infrastructure.trades_repository import TradesRepository
from src.bm_common.errors import MarketNotFoundError
from src.bm_market.application.schemas import (
    MarketDetail,
    MarketListResponse,
    OrderBookResponse,
    cursor_decode,
    cursor_encode,
)
from src.bm_market.domain.models import Market
from src.bm_market.domain.repository import MarketRepositoryProtocol
from src.bm_market.infrastructure.persistence import MarketRepository


class MarketApplicationService:
    def __init__(
        self,
        repo: MarketRepositoryProtocol | None = None,
        trades_repo: TradesRepository | None = None,
    ) -> None:
        self._repo: MarketRepositoryProtocol = repo or MarketRepository()
        self._trades = trades_repo or TradesRepository()

    async def _get_or_raise(self, db: AsyncSession, market_id: str) -> Market:
        market = await self._repo.get_market_by_id(db, market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        return market

    async def list_markets(
        self,
        db: AsyncSession,
        status: str | None,
        cursor: str | None,
        limit: int,
    ) -> MarketListResponse:
        # status=None → default OPEN; status='ALL' → no filter
        sql_status = None if status == "ALL" else (status or "OPEN")
        cursor_ts, cursor_id = cursor_decode(cursor)

        # Fetch limit+1 to detect has_more without COUNT(*)
        markets = await self._repo.list_markets(
            db, sql_status, cursor_ts, cursor_id, limit + 1
        )
        has_more = len(markets) > limit
        page = markets[:limit]

        items = [MarketDetail.from_domain(m) for m in page]
        next_cursor = cursor_encode(page[-1]) if has_more and page else None
        return MarketListResponse(items=items, next_cursor=next_cursor, has_more=has_more)

    async def get_market(self, db: AsyncSession, market_id: str) -> MarketDetail:
        return MarketDetail.from_domain(await self._get_or_raise(db, market_id))

    async def get_orderbook(
        self, db: AsyncSession, market_id: str, levels: int
    ) -> OrderBookResponse:
        market = await self._get_or_raise(db, market_id)
        snapshot = await self._repo.get_orderbook_snapshot(db, market, levels)
        return OrderBookResponse.from_snapshot(snapshot)

    async def list_trades(
        self, db: AsyncSession, market_id: str, limit: int, cursor: str | None
    ) -> TradeListResponse:
        await self._get_or_raise(db, market_id)
        items = await self._trades.list_by_market(db, market_id, limit + 1, cursor)
        has_more = len(items) > limit
        if has_more:
            items = items[:limit]
        next_cursor = items[-1]["id"] if has_more and items else None
        return TradeListResponse(
            items=[TradeResponse(**t) for t in items],
            has_more=has_more,
            next_cursor=next_cursor,
        )
