"""HTTP boundary: routing, auth header, envelope and AppError mapping."""
from collections.abc import AsyncGenerator, Iterator
from typing import Any

import pytest
from httpx import AsyncClient

from src.bm_account.api import positions_router as positions_api
from src.bm_account.api import router as account_api
from src.bm_account.application.service import AccountApplicationService
from src.bm_admin.api import router as admin_api
from src.bm_admin.application.service import AdminService
from src.bm_common.database import get_db_session
from src.bm_gateway.user.db_models import UserModel
from src.bm_market.api import router as market_api
from src.bm_market.application.service import MarketApplicationService
from src.bm_matching.engine.engine import MatchingEngine
from src.bm_order.application import service as order_service
from src.main import app
from tests.unit.fakes import (
    FakeAccountRepository,
    FakeMarketRepository,
    FakeOrderRepository,
    FakePositionRepository,
    FakeStore,
    FakeTradesRepository,
    session_factory_for,
)


class _Result:
    def __init__(self, user: UserModel | None) -> None:
        self._user = user

    def scalar_one_or_none(self) -> UserModel | None:
        return self._user


class _UserLookupSession:
    """Answers the SELECT issued by get_current_user from the fake store."""

    def __init__(self, store: FakeStore) -> None:
        self._store = store

    async def execute(self, stmt: Any) -> _Result:
        user_id = next(iter(stmt.compile().params.values()))
        account = self._store.accounts.get(user_id)
        if account is None:
            return _Result(None)
        return _Result(
            UserModel(
                id=account.user_id,
                username=account.user_id,
                balance=account.balance,
                is_admin=account.is_admin,
            )
        )


@pytest.fixture
def wired(
    store: FakeStore,
    engine: MatchingEngine,
    admin: AdminService,
    monkeypatch: pytest.MonkeyPatch,
) -> Iterator[FakeStore]:
    store.add_user("root", balance=0, is_admin=True)

    async def _session() -> AsyncGenerator[_UserLookupSession, None]:
        yield _UserLookupSession(store)

    app.dependency_overrides[get_db_session] = _session
    monkeypatch.setattr(order_service, "get_matching_engine", lambda: engine)
    monkeypatch.setattr(order_service, "_repo", FakeOrderRepository(store))
    account_svc = AccountApplicationService(
        repo=FakeAccountRepository(store),
        position_repo=FakePositionRepository(store),
        order_repo=FakeOrderRepository(store),
        session_factory=session_factory_for(store),
    )
    monkeypatch.setattr(account_api, "_service", account_svc)
    monkeypatch.setattr(positions_api, "_service", account_svc)
    monkeypatch.setattr(
        market_api,
        "_service",
        MarketApplicationService(
            repo=FakeMarketRepository(store),
            trades_repo=FakeTradesRepository(store),  # type: ignore[arg-type]
        ),
    )
    monkeypatch.setattr(admin_api, "_service", admin)
    yield store


def _as(user_id: str) -> dict[str, str]:
    return {"X-User-Id": user_id}


class TestAuth:
    async def test_missing_header_is_401(self, client: AsyncClient, wired: FakeStore) -> None:
        resp = await client.get("/api/v1/account/balance")
        assert resp.status_code == 401

    async def test_unknown_user_is_401(self, client: AsyncClient, wired: FakeStore) -> None:
        resp = await client.get("/api/v1/account/balance", headers=_as("mallory"))
        assert resp.status_code == 401

    async def test_admin_route_requires_admin(
        self, client: AsyncClient, wired: FakeStore
    ) -> None:
        resp = await client.post(
            "/api/v1/admin/markets/mkt-1/resolve", json={"outcome": "YES"}, headers=_as("alice")
        )
        assert resp.status_code == 403
        body = resp.json()
        assert body["code"] == 1002
        assert body["data"] == {"kind": "Forbidden"}


class TestOrders:
    async def test_place_and_match(self, client: AsyncClient, wired: FakeStore) -> None:
        resp = await client.post(
            "/api/v1/orders",
            json={"market_id": "mkt-1", "side": "NO", "price_limit": "0.40", "amount_cents": 40},
            headers=_as("bob"),
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["trades"] == []

        resp = await client.post(
            "/api/v1/orders",
            json={"market_id": "mkt-1", "side": "YES", "price_limit": "0.60", "amount_cents": 60},
            headers=_as("alice"),
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["code"] == 0
        assert resp.headers["X-Request-Id"] == body["request_id"]
        data = body["data"]
        assert len(data["trades"]) == 1
        assert data["trades"][0]["yes_price"] == 60
        assert data["trades"][0]["shares_traded"] == 40
        assert data["order"]["status"] == "FILLED"
        assert data["order"]["original_amount"] == 40
        resting = data["resting_order"]
        assert resting["id"] != data["order"]["id"]
        assert resting["status"] == "OPEN"
        assert (resting["original_amount"], resting["remaining_amount"]) == (20, 20)
        assert resting["filled_amount"] == 0
        assert resting["price"] == "0.60"

    async def test_price_out_of_range(self, client: AsyncClient, wired: FakeStore) -> None:
        resp = await client.post(
            "/api/v1/orders",
            json={"market_id": "mkt-1", "side": "YES", "price_limit": "1.00", "amount_cents": 10},
            headers=_as("alice"),
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == 4001
        assert resp.json()["data"]["kind"] == "ValidationError"

    async def test_insufficient_funds(self, client: AsyncClient, wired: FakeStore) -> None:
        resp = await client.post(
            "/api/v1/orders",
            json={"market_id": "mkt-1", "side": "YES", "price_limit": "0.5", "amount_cents": 20_000},
            headers=_as("alice"),
        )
        assert resp.status_code == 422
        assert resp.json()["data"]["kind"] == "InsufficientFunds"

    async def test_cancel_get_and_list(self, client: AsyncClient, wired: FakeStore) -> None:
        placed = await client.post(
            "/api/v1/orders",
            json={"market_id": "mkt-1", "side": "YES", "price_limit": "0.55", "amount_cents": 25},
            headers=_as("alice"),
        )
        order_id = placed.json()["data"]["order"]["id"]

        forbidden = await client.get(f"/api/v1/orders/{order_id}", headers=_as("bob"))
        assert forbidden.status_code == 403

        cancelled = await client.post(f"/api/v1/orders/{order_id}/cancel", headers=_as("alice"))
        assert cancelled.status_code == 200
        assert cancelled.json()["data"] == {"order_id": order_id, "refunded_amount": 25}

        fetched = await client.get(f"/api/v1/orders/{order_id}", headers=_as("alice"))
        assert fetched.json()["data"]["status"] == "CANCELLED"

        listed = await client.get("/api/v1/orders", headers=_as("alice"))
        assert [o["id"] for o in listed.json()["data"]["items"]] == [order_id]

    async def test_missing_order_is_404(self, client: AsyncClient, wired: FakeStore) -> None:
        resp = await client.post("/api/v1/orders/nope/cancel", headers=_as("alice"))
        assert resp.status_code == 404
        assert resp.json()["data"]["kind"] == "NotFound"


class TestAccountAndMarkets:
    async def test_deposit_and_balance(self, client: AsyncClient, wired: FakeStore) -> None:
        resp = await client.post(
            "/api/v1/account/deposit", json={"amount_cents": 500}, headers=_as("carol")
        )
        assert resp.json()["data"]["balance_cents"] == 10_500
        balance = await client.get("/api/v1/account/balance", headers=_as("carol"))
        assert balance.json()["data"]["available_cents"] == 10_500

    async def test_market_views(self, client: AsyncClient, wired: FakeStore) -> None:
        await client.post(
            "/api/v1/orders",
            json={"market_id": "mkt-1", "side": "YES", "price_limit": "0.55", "amount_cents": 25},
            headers=_as("alice"),
        )
        markets = await client.get("/api/v1/markets", headers=_as("bob"))
        assert [m["id"] for m in markets.json()["data"]["items"]] == ["mkt-1"]

        book = await client.get("/api/v1/markets/mkt-1/orderbook", headers=_as("bob"))
        assert book.json()["data"]["yes"][0] == {
            "price_cents": 55,
            "total_amount": 25,
            "order_count": 1,
        }

        missing = await client.get("/api/v1/markets/nope", headers=_as("bob"))
        assert missing.status_code == 404

    async def test_positions(self, client: AsyncClient, wired: FakeStore) -> None:
        resp = await client.get("/api/v1/positions/mkt-1", headers=_as("alice"))
        assert resp.status_code == 404
        resp = await client.get("/api/v1/positions", headers=_as("alice"))
        assert resp.json()["data"] == {"items": [], "total": 0}


class TestAdmin:
    async def test_create_open_resolve(self, client: AsyncClient, wired: FakeStore) -> None:
        created = await client.post(
            "/api/v1/admin/markets", json={"title": "Will it snow?"}, headers=_as("root")
        )
        assert created.status_code == 201
        market_id = created.json()["data"]["id"]
        assert created.json()["data"]["status"] == "PROPOSED"

        opened = await client.post(
            f"/api/v1/admin/markets/{market_id}/status",
            json={"status": "OPEN"},
            headers=_as("root"),
        )
        assert opened.json()["data"]["status"] == "OPEN"

        resolved = await client.post(
            f"/api/v1/admin/markets/{market_id}/resolve",
            json={"outcome": "NO", "note": "Sunny"},
            headers=_as("root"),
        )
        assert resolved.status_code == 200
        assert resolved.json()["data"]["outcome"] == "NO"

        again = await client.post(
            f"/api/v1/admin/markets/{market_id}/resolve",
            json={"outcome": "YES"},
            headers=_as("root"),
        )
        assert again.status_code == 422
        assert again.json()["code"] == 3003

    async def test_delete_market(self, client: AsyncClient, wired: FakeStore) -> None:
        await client.post(
            "/api/v1/orders",
            json={"market_id": "mkt-1", "side": "NO", "price_limit": "0.3", "amount_cents": 15},
            headers=_as("carol"),
        )
        resp = await client.delete("/api/v1/admin/markets/mkt-1", headers=_as("root"))
        assert resp.status_code == 200
        assert resp.json()["data"] == {
            "market_id": "mkt-1",
            "refunds": {"carol": 15},
            "total_refunded_cents": 15,
        }
        assert wired.balance("carol") == 10_000


async def test_health(client: AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.json()["status"] == "ok"
