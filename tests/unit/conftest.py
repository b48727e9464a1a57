"""Fixtures wiring the matching engine and admin service to in-memory fakes."""
import pytest

from src.bm_admin.application.service import AdminService
from src.bm_matching.engine.engine import MatchingEngine
from tests.unit.fakes import (
    FakeAccountRepository,
    FakeMarketRepository,
    FakeOrderRepository,
    FakePositionRepository,
    FakeStore,
    FakeTradesRepository,
    build_engine,
    session_factory_for,
)


@pytest.fixture
def store() -> FakeStore:
    s = FakeStore()
    s.add_market("mkt-1")
    for user_id in ("alice", "bob", "carol"):
        s.add_user(user_id, balance=10_000)
    return s


@pytest.fixture
def engine(store: FakeStore) -> MatchingEngine:
    return build_engine(store)


@pytest.fixture
def admin(store: FakeStore, engine: MatchingEngine) -> AdminService:
    return AdminService(
        market_repo=FakeMarketRepository(store),
        order_repo=FakeOrderRepository(store),
        account_repo=FakeAccountRepository(store),
        position_repo=FakePositionRepository(store),
        trades_repo=FakeTradesRepository(store),
        session_factory=session_factory_for(store),
        engine=engine,
    )
