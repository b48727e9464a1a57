"""AccountApplicationService — thin composition layer.

Deposit is a write and runs through run_in_transaction; balance, ledger and
position reads use the request-scoped session without an explicit transaction.
"""

import logging
from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_account.application.positions_schemas import (
    PositionListResponse,
    PositionResponse,
)
from src.bm_account.application.schemas import (
    BalanceResponse,
    DepositResponse,
    LedgerEntryItem,
    LedgerResponse,
    cursor_decode,
    cursor_encode,
)
from src.bm_account.domain.models import Account
from src.bm_account.domain.repository import (
    AccountRepositoryProtocol,
    PositionRepositoryProtocol,
)
from src.bm_account.infrastructure.persistence import AccountRepository
from src.bm_account.infrastructure.positions_repository import PositionRepository
from src.bm_common.cents import cents_to_display
from src.bm_common.database import run_in_transaction
from src.bm_common.enums import LedgerEntryType
from src.bm_common.errors import PositionNotFoundError, UserNotFoundError
from src.bm_order.domain.repository import OrderRepositoryProtocol
from src.bm_order.infrastructure.persistence import OrderRepository

logger = logging.getLogger(__name__)


class AccountApplicationService:
    def __init__(
        self,
        repo: AccountRepositoryProtocol | None = None,
        position_repo: PositionRepositoryProtocol | None = None,
        order_repo: OrderRepositoryProtocol | None = None,
        session_factory: Callable[[], AsyncSession] | None = None,
    ) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()
        self._positions: PositionRepositoryProtocol = position_repo or PositionRepository()
        self._orders: OrderRepositoryProtocol = order_repo or OrderRepository()
        self._session_factory = session_factory

    async def get_balance(self, db: AsyncSession, user_id: str) -> BalanceResponse:
        account = await self._repo.get_account(db, user_id)
        if account is None:
            raise UserNotFoundError(user_id)
        locked = await self._orders.sum_resting_by_user(user_id, db)
        return BalanceResponse.from_cents(user_id, account.balance, locked)

    async def deposit(self, user_id: str, amount_cents: int) -> DepositResponse:
        async def work(db: AsyncSession) -> Account:
            return await self._repo.credit(
                db, user_id, amount_cents, LedgerEntryType.DEPOSIT,
                "DEPOSIT", None, "Virtual currency deposit",
            )

        account = await run_in_transaction(work, session_factory=self._session_factory)
        logger.info("Deposit %d cents for %s, balance=%d", amount_cents, user_id, account.balance)
        return DepositResponse.from_result(balance=account.balance, amount=amount_cents)

    async def list_ledger(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        entry_type: str | None,
    ) -> LedgerResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._repo.list_ledger_entries(
            db, user_id, cursor_id, limit + 1, entry_type
        )
        has_more = len(entries) > limit
        page = entries[:limit]

        items = [
            LedgerEntryItem(
                id=e.id,
                entry_type=e.entry_type,
                amount_cents=e.amount,
                amount_display=cents_to_display(e.amount),
                balance_after_cents=e.balance_after,
                balance_after_display=cents_to_display(e.balance_after),
                reference_type=e.reference_type,
                reference_id=e.reference_id,
                description=e.description,
                created_at=e.created_at.isoformat() if e.created_at else "",
            )
            for e in page
        ]

        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return LedgerResponse(items=items, next_cursor=next_cursor, has_more=has_more)

    async def list_positions(self, db: AsyncSession, user_id: str) -> PositionListResponse:
        positions = await self._positions.list_by_user(db, user_id)
        return PositionListResponse(
            items=[PositionResponse.from_domain(p) for p in positions],
            total=len(positions),
        )

    async def get_position(
        self, db: AsyncSession, user_id: str, market_id: str
    ) -> PositionResponse:
        position = await self._positions.get(db, user_id, market_id)
        if position is None:
            raise PositionNotFoundError(market_id)
        return PositionResponse.from_domain(position)
