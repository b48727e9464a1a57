"""MatchingEngine.cancel_order against in-memory repositories."""
import pytest

from src.bm_common.enums import LedgerEntryType, OrderStatus
from src.bm_common.errors import (
    OrderForbiddenError,
    OrderNotCancellableError,
    OrderNotFoundError,
)
from src.bm_matching.engine.engine import MatchingEngine
from tests.unit.fakes import FakeStore


class TestCancelOrder:
    async def test_cancel_open_order_refunds_remaining(
        self, engine: MatchingEngine, store: FakeStore
    ) -> None:
        order = (await engine.submit_order("alice", "mkt-1", "YES", 60, 25)).order
        assert store.balance("alice") == 9_975

        result = await engine.cancel_order("alice", order.id)

        assert result.order_id == order.id
        assert result.refunded_amount == 25
        assert store.balance("alice") == 10_000
        stored = store.orders[order.id]
        assert stored.status is OrderStatus.CANCELLED
        assert stored.cancelled_at is not None
        assert store.ledger[-1].entry_type == LedgerEntryType.ORDER_REFUND.value
        assert store.ledger[-1].amount == 25

    async def test_cancel_partially_filled_refunds_only_remainder(
        self, engine: MatchingEngine, store: FakeStore
    ) -> None:
        maker = (await engine.submit_order("bob", "mkt-1", "NO", 40, 50)).order
        await engine.submit_order("alice", "mkt-1", "YES", 60, 20)

        result = await engine.cancel_order("bob", maker.id)

        assert result.refunded_amount == 30
        assert store.balance("bob") == 10_000 - 20
        assert store.orders[maker.id].filled_amount == 20

    async def test_unknown_order(self, engine: MatchingEngine) -> None:
        with pytest.raises(OrderNotFoundError):
            await engine.cancel_order("alice", "missing")

    async def test_other_users_order_forbidden(
        self, engine: MatchingEngine, store: FakeStore
    ) -> None:
        order = (await engine.submit_order("alice", "mkt-1", "YES", 60, 25)).order
        with pytest.raises(OrderForbiddenError):
            await engine.cancel_order("bob", order.id)
        assert store.orders[order.id].status is OrderStatus.OPEN

    async def test_filled_order_not_cancellable(
        self, engine: MatchingEngine, store: FakeStore
    ) -> None:
        maker = (await engine.submit_order("bob", "mkt-1", "NO", 40, 10)).order
        await engine.submit_order("alice", "mkt-1", "YES", 60, 10)
        with pytest.raises(OrderNotCancellableError):
            await engine.cancel_order("bob", maker.id)

    async def test_double_cancel_fails_without_second_refund(
        self, engine: MatchingEngine, store: FakeStore
    ) -> None:
        order = (await engine.submit_order("alice", "mkt-1", "YES", 60, 25)).order
        await engine.cancel_order("alice", order.id)
        with pytest.raises(OrderNotCancellableError):
            await engine.cancel_order("alice", order.id)
        assert store.balance("alice") == 10_000

    async def test_cancelled_order_leaves_the_book(
        self, engine: MatchingEngine, store: FakeStore
    ) -> None:
        order = (await engine.submit_order("bob", "mkt-1", "NO", 40, 10)).order
        await engine.cancel_order("bob", order.id)
        result = await engine.submit_order("alice", "mkt-1", "YES", 60, 10)
        assert result.trades == []
