"""MarketApplicationService: listing, order book snapshot and trade history."""
from datetime import UTC, datetime, timedelta

import pytest

from src.bm_common.enums import MarketStatus
from src.bm_common.errors import MarketNotFoundError
from src.bm_market.application.schemas import cursor_decode
from src.bm_market.application.service import MarketApplicationService
from src.bm_matching.engine.engine import MatchingEngine
from tests.unit.fakes import FakeMarketRepository, FakeStore, FakeTradesRepository


@pytest.fixture
def svc(store: FakeStore) -> MarketApplicationService:
    return MarketApplicationService(
        repo=FakeMarketRepository(store), trades_repo=FakeTradesRepository(store)  # type: ignore[arg-type]
    )


class TestListMarkets:
    async def test_defaults_to_open_and_paginates(
        self, svc: MarketApplicationService, store: FakeStore
    ) -> None:
        for i in range(3):
            store.add_market(f"mkt-open-{i}")
            store.markets[f"mkt-open-{i}"].created_at = datetime(2026, 2, 1, tzinfo=UTC) + timedelta(days=i)
        store.add_market("mkt-draft", status=MarketStatus.PROPOSED)

        page1 = await svc.list_markets(None, None, None, 2)  # type: ignore[arg-type]
        assert [m.id for m in page1.items] == ["mkt-open-2", "mkt-open-1"]
        assert page1.has_more
        assert cursor_decode(page1.next_cursor)[1] == "mkt-open-1"

        page2 = await svc.list_markets(None, None, page1.next_cursor, 2)  # type: ignore[arg-type]
        assert [m.id for m in page2.items] == ["mkt-open-0", "mkt-1"]
        assert not page2.has_more

    async def test_all_status(self, svc: MarketApplicationService, store: FakeStore) -> None:
        store.add_market("mkt-draft", status=MarketStatus.PROPOSED)
        resp = await svc.list_markets(None, "ALL", None, 10)  # type: ignore[arg-type]
        assert {m.id for m in resp.items} == {"mkt-1", "mkt-draft"}


class TestGetMarket:
    async def test_detail(self, svc: MarketApplicationService) -> None:
        detail = await svc.get_market(None, "mkt-1")  # type: ignore[arg-type]
        assert detail.status == "OPEN"
        assert detail.total_volume_display == "$0.00"

    async def test_missing(self, svc: MarketApplicationService) -> None:
        with pytest.raises(MarketNotFoundError):
            await svc.get_market(None, "nope")  # type: ignore[arg-type]


class TestOrderBook:
    async def test_aggregates_resting_levels(
        self, svc: MarketApplicationService, engine: MatchingEngine
    ) -> None:
        await engine.submit_order("alice", "mkt-1", "YES", 55, 10)
        await engine.submit_order("bob", "mkt-1", "YES", 55, 15)
        await engine.submit_order("bob", "mkt-1", "YES", 50, 5)
        await engine.submit_order("carol", "mkt-1", "NO", 30, 20)

        book = await svc.get_orderbook(None, "mkt-1", 10)  # type: ignore[arg-type]

        assert [(lv.price_cents, lv.total_amount, lv.order_count) for lv in book.yes] == [
            (55, 25, 2),
            (50, 5, 1),
        ]
        assert [(lv.price_cents, lv.total_amount) for lv in book.no] == [(30, 20)]

    async def test_levels_limit(
        self, svc: MarketApplicationService, engine: MatchingEngine
    ) -> None:
        for price in (10, 20, 30):
            await engine.submit_order("alice", "mkt-1", "YES", price, 5)
        book = await svc.get_orderbook(None, "mkt-1", 2)  # type: ignore[arg-type]
        assert [lv.price_cents for lv in book.yes] == [30, 20]


class TestTrades:
    async def test_newest_first_with_cursor(
        self, svc: MarketApplicationService, engine: MatchingEngine
    ) -> None:
        for _ in range(3):
            await engine.submit_order("bob", "mkt-1", "NO", 40, 10)
            await engine.submit_order("alice", "mkt-1", "YES", 60, 10)

        page1 = await svc.list_trades(None, "mkt-1", 2, None)  # type: ignore[arg-type]
        assert len(page1.items) == 2
        assert page1.has_more
        assert page1.items[0].id > page1.items[1].id

        page2 = await svc.list_trades(None, "mkt-1", 2, page1.next_cursor)  # type: ignore[arg-type]
        assert len(page2.items) == 1
        assert not page2.has_more

    async def test_missing_market(self, svc: MarketApplicationService) -> None:
        with pytest.raises(MarketNotFoundError):
            await svc.list_trades(None, "nope", 10, None)  # type: ignore[arg-type]
