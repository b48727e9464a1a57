"""Tests for the market status state machine."""
import pytest

from src.bm_common.enums import MarketStatus
from src.bm_common.errors import InvalidTransitionError, MarketNotTradableError
from src.bm_market.domain.models import Market
from src.bm_market.domain.state_machine import (
    can_transition,
    ensure_tradable,
    ensure_transition,
)

S = MarketStatus


class TestTransitions:
    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (S.PROPOSED, S.OPEN),
            (S.PROPOSED, S.REJECTED),
            (S.OPEN, S.CLOSED),
            (S.OPEN, S.RESOLVED),
            (S.CLOSED, S.RESOLVED),
        ],
    )
    def test_allowed(self, current: MarketStatus, target: MarketStatus) -> None:
        assert can_transition(current, target)
        ensure_transition(current, target)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (S.PROPOSED, S.CLOSED),
            (S.PROPOSED, S.RESOLVED),
            (S.CLOSED, S.OPEN),
            (S.OPEN, S.PROPOSED),
            (S.RESOLVED, S.OPEN),
            (S.RESOLVED, S.CLOSED),
            (S.REJECTED, S.OPEN),
        ],
    )
    def test_forbidden(self, current: MarketStatus, target: MarketStatus) -> None:
        assert not can_transition(current, target)
        with pytest.raises(InvalidTransitionError):
            ensure_transition(current, target)

    def test_terminal_states_have_no_exits(self) -> None:
        for terminal in (S.RESOLVED, S.REJECTED):
            assert not any(can_transition(terminal, t) for t in S)


class TestEnsureTradable:
    def test_open_is_tradable(self) -> None:
        ensure_tradable(Market(id="m", title="t", status=S.OPEN))

    @pytest.mark.parametrize("status", [S.PROPOSED, S.CLOSED, S.RESOLVED, S.REJECTED])
    def test_other_statuses_rejected(self, status: MarketStatus) -> None:
        with pytest.raises(MarketNotTradableError):
            ensure_tradable(Market(id="m", title="t", status=status))


class TestRecordTrade:
    def test_aggregates(self) -> None:
        market = Market(id="m", title="t", status=S.OPEN)
        market.record_trade(60, 40)
        market.record_trade(55, 10)
        assert (market.last_yes_price, market.last_no_price) == (55, 45)
        assert market.total_volume == 50
        assert market.total_yes_shares == market.total_no_shares == 50
