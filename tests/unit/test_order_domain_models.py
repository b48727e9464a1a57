"""Unit tests for the Order dataclass and its state machine."""
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from src.bm_common.enums import OrderSide, OrderStatus
from src.bm_order.domain.models import Order

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _make_order(**kwargs: Any) -> Order:
    defaults: dict[str, Any] = {
        "id": "ord-1",
        "market_id": "mkt-1",
        "user_id": "alice",
        "side": "YES",
        "price_cents": 60,
        "original_amount": 100,
        "remaining_amount": 100,
        "created_at": T0,
    }
    defaults.update(kwargs)
    return Order(**defaults)


class TestConstruction:
    def test_coerces_enums(self) -> None:
        order = _make_order(side="NO", status="PARTIALLY_FILLED", remaining_amount=60, filled_amount=40)
        assert order.side is OrderSide.NO
        assert order.status is OrderStatus.PARTIALLY_FILLED

    def test_rejects_broken_amount_invariant(self) -> None:
        with pytest.raises(ValueError, match="original"):
            _make_order(remaining_amount=90, filled_amount=5)

    def test_rejects_unknown_side(self) -> None:
        with pytest.raises(ValueError):
            _make_order(side="MAYBE")


class TestApplyFill:
    def test_partial_fill(self) -> None:
        order = _make_order()
        order.apply_fill(40, T0)
        assert order.remaining_amount == 60
        assert order.filled_amount == 40
        assert order.status is OrderStatus.PARTIALLY_FILLED
        assert order.filled_at is None

    def test_exact_fill_marks_filled(self) -> None:
        order = _make_order()
        order.apply_fill(100, T0)
        assert order.status is OrderStatus.FILLED
        assert order.filled_at == T0
        assert order.original_amount == order.remaining_amount + order.filled_amount

    def test_overfill_rejected(self) -> None:
        with pytest.raises(ValueError):
            _make_order().apply_fill(101, T0)

    def test_zero_fill_rejected(self) -> None:
        with pytest.raises(ValueError):
            _make_order().apply_fill(0, T0)

    def test_cancelled_order_cannot_fill(self) -> None:
        order = _make_order()
        order.cancel(T0)
        with pytest.raises(ValueError):
            order.apply_fill(1, T0)


class TestCancel:
    def test_cancel_open_returns_remaining(self) -> None:
        order = _make_order(original_amount=25, remaining_amount=25)
        assert order.cancel(T0) == 25
        assert order.status is OrderStatus.CANCELLED
        assert order.cancelled_at == T0
        # remaining kept as the record of what was refunded
        assert order.remaining_amount == 25

    def test_cancel_partially_filled(self) -> None:
        order = _make_order()
        order.apply_fill(30, T0)
        assert order.cancel(T0) == 70

    def test_filled_not_cancellable(self) -> None:
        order = _make_order()
        order.apply_fill(100, T0)
        assert not order.is_cancellable
        with pytest.raises(ValueError):
            order.cancel(T0)


class TestPriority:
    def test_price_then_time_then_id(self) -> None:
        a = _make_order(id="b", price_cents=40, created_at=T0)
        b = _make_order(id="a", price_cents=40, created_at=T0 + timedelta(seconds=1))
        c = _make_order(id="c", price_cents=35, created_at=T0 + timedelta(seconds=5))
        d = _make_order(id="a", price_cents=40, created_at=T0)
        ordered = sorted([a, b, c, d], key=lambda o: o.priority_key)
        assert [o.id for o in ordered] == ["c", "a", "b", "a"]
        assert ordered[1] is d

    def test_missing_created_at_raises(self) -> None:
        order = _make_order(created_at=None)
        with pytest.raises(ValueError, match="created_at"):
            _ = order.priority_key


class TestSplitRemainder:
    def test_remainder_becomes_fresh_open_order(self) -> None:
        order = _make_order(original_amount=60, remaining_amount=60)
        order.apply_fill(40, T0)
        later = T0 + timedelta(seconds=1)

        rest = order.split_remainder("ord-2", later)

        assert (rest.id, rest.status) == ("ord-2", OrderStatus.OPEN)
        assert (rest.original_amount, rest.remaining_amount, rest.filled_amount) == (20, 20, 0)
        assert (rest.side, rest.price_cents, rest.user_id) == (OrderSide.YES, 60, "alice")
        assert rest.created_at == later
        assert order.status is OrderStatus.FILLED
        assert (order.original_amount, order.remaining_amount, order.filled_amount) == (40, 0, 40)
        assert order.filled_at == later

    @pytest.mark.parametrize("fill", [0, 100])
    def test_only_partially_filled_orders_split(self, fill: int) -> None:
        order = _make_order()
        if fill:
            order.apply_fill(fill, T0)
        with pytest.raises(ValueError):
            order.split_remainder("ord-2", T0)
