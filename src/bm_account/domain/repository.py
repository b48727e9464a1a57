"""Repository Protocols — dependency inversion for testability.

Unit tests inject in-memory fakes that conform to these Protocols.
Infrastructure layer provides the real implementations.
"""

from collections.abc import Iterable
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_account.domain.models import Account, LedgerEntry, Position


class AccountRepositoryProtocol(Protocol):
    async def get_account(self, db: AsyncSession, user_id: str) -> Account | None: ...

    async def get_account_for_update(
        self, db: AsyncSession, user_id: str
    ) -> Account | None: ...

    async def debit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        ref_type: str | None,
        ref_id: str | None,
        description: str | None = None,
    ) -> Account: ...

    async def credit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        ref_type: str | None,
        ref_id: str | None,
        description: str | None = None,
    ) -> Account: ...

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]: ...


class PositionRepositoryProtocol(Protocol):
    async def get_many_for_update(
        self, db: AsyncSession, market_id: str, user_ids: Iterable[str]
    ) -> dict[str, Position]: ...

    async def list_by_market_for_update(
        self, db: AsyncSession, market_id: str
    ) -> list[Position]: ...

    async def save(self, db: AsyncSession, position: Position) -> None: ...

    async def finalize(self, db: AsyncSession, position: Position) -> None: ...

    async def delete_by_market(self, db: AsyncSession, market_id: str) -> int: ...

    async def list_by_user(self, db: AsyncSession, user_id: str) -> list[Position]: ...

    async def get(
        self, db: AsyncSession, user_id: str, market_id: str
    ) -> Position | None: ...
