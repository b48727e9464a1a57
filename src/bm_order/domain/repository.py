# src/bm_order/domain/repository.py
"""OrderRepository Protocol — interface contract for persistence layer."""
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_common.enums import OrderSide
from src.bm_order.domain.models import Order


class OrderRepositoryProtocol(Protocol):
    async def save(self, order: Order, db: AsyncSession) -> None: ...

    async def update(self, order: Order, db: AsyncSession) -> None: ...

    async def get_by_id(self, order_id: str, db: AsyncSession) -> Order | None: ...

    async def get_by_id_for_update(
        self, order_id: str, db: AsyncSession
    ) -> Order | None: ...

    async def list_counter_orders_for_update(
        self, market_id: str, side: OrderSide, max_price: int, db: AsyncSession
    ) -> list[Order]: ...

    async def list_resting_by_market_for_update(
        self, market_id: str, db: AsyncSession
    ) -> list[Order]: ...

    async def sum_resting_by_user(self, user_id: str, db: AsyncSession) -> int: ...

    async def delete_by_market(self, market_id: str, db: AsyncSession) -> int: ...

    async def list_by_user(
        self,
        user_id: str,
        market_id: str | None,
        statuses: list[str] | None,
        limit: int,
        cursor_id: str | None,
        db: AsyncSession,
    ) -> list[Order]: ...
