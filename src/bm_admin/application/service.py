# src/bm_admin/application/service.py
"""Admin application service: market lifecycle, resolution and deletion.

Resolution and deletion are market-scoped units of work. They run under the
matching engine's per-market lock and inside one run_in_transaction, with the
market row read FOR UPDATE before anything else, so the status precondition
and every write commit together.
"""
import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_account.domain.repository import (
    AccountRepositoryProtocol,
    PositionRepositoryProtocol,
)
from src.bm_account.infrastructure.persistence import AccountRepository
from src.bm_account.infrastructure.positions_repository import PositionRepository
from src.bm_clearing.domain.repository import TradesRepositoryProtocol
from src.bm_clearing.domain.settlement import (
    Payout,
    compute_delete_refunds,
    settle_positions,
)
from src.bm_clearing.infrastructure.trades_repository import TradesRepository
from src.bm_common.database import run_in_transaction
from src.bm_common.datetime_utils import utc_now
from src.bm_common.enums import LedgerEntryType, MarketStatus, ResolutionOutcome
from src.bm_common.errors import (
    InvalidOutcomeError,
    InvalidTransitionError,
    MarketAlreadyResolvedError,
    MarketInvalidStatusError,
    MarketNotFoundError,
)
from src.bm_common.id_generator import generate_id
from src.bm_market.domain.models import Market
from src.bm_market.domain.repository import MarketRepositoryProtocol
from src.bm_market.domain.state_machine import RESOLVABLE_STATUSES, ensure_transition
from src.bm_market.infrastructure.persistence import MarketRepository
from src.bm_matching.application.service import get_matching_engine
from src.bm_matching.engine.engine import MatchingEngine
from src.bm_order.domain.repository import OrderRepositoryProtocol
from src.bm_order.infrastructure.persistence import OrderRepository

logger = logging.getLogger(__name__)


@dataclass
class ResolutionResult:
    market_id: str
    outcome: ResolutionOutcome
    payouts: list[Payout] = field(default_factory=list)
    cancelled_orders: int = 0
    refunded_amount: int = 0


class AdminService:
    def __init__(
        self,
        market_repo: MarketRepositoryProtocol | None = None,
        order_repo: OrderRepositoryProtocol | None = None,
        account_repo: AccountRepositoryProtocol | None = None,
        position_repo: PositionRepositoryProtocol | None = None,
        trades_repo: TradesRepositoryProtocol | None = None,
        session_factory: Callable[[], AsyncSession] | None = None,
        engine: MatchingEngine | None = None,
    ) -> None:
        self._markets: MarketRepositoryProtocol = market_repo or MarketRepository()
        self._orders: OrderRepositoryProtocol = order_repo or OrderRepository()
        self._accounts: AccountRepositoryProtocol = account_repo or AccountRepository()
        self._positions: PositionRepositoryProtocol = position_repo or PositionRepository()
        self._trades: TradesRepositoryProtocol = trades_repo or TradesRepository()
        self._session_factory = session_factory
        self._engine = engine

    def _matching_engine(self) -> MatchingEngine:
        return self._engine or get_matching_engine()

    def _market_lock(self, market_id: str) -> asyncio.Lock:
        return self._matching_engine().market_lock(market_id)

    # ------------------------------------------------------------------
    # resolveMarket
    # ------------------------------------------------------------------

    async def resolve_market(
        self, market_id: str, outcome: str, note: str | None = None
    ) -> ResolutionResult:
        try:
            resolved_outcome = ResolutionOutcome(outcome)
        except ValueError:
            raise InvalidOutcomeError(str(outcome)) from None

        async def work(db: AsyncSession) -> ResolutionResult:
            return await self._resolve_in_tx(db, market_id, resolved_outcome, note)

        async with self._market_lock(market_id):
            result = await run_in_transaction(work, session_factory=self._session_factory)
        self._matching_engine().release_market_lock(market_id)

        logger.info(
            "Market %s resolved %s: payouts=%d total=%d cancelled_orders=%d refunded=%d",
            market_id,
            resolved_outcome.value,
            len(result.payouts),
            sum(p.amount for p in result.payouts),
            result.cancelled_orders,
            result.refunded_amount,
        )
        return result

    async def _resolve_in_tx(
        self,
        db: AsyncSession,
        market_id: str,
        outcome: ResolutionOutcome,
        note: str | None,
    ) -> ResolutionResult:
        now = utc_now()
        market = await self._markets.get_market_for_update(db, market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        if market.status is MarketStatus.RESOLVED:
            raise MarketAlreadyResolvedError(market_id)
        if market.status not in RESOLVABLE_STATUSES:
            raise MarketInvalidStatusError(market_id, market.status.value, "resolve")

        positions = await self._positions.list_by_market_for_update(db, market_id)
        resting = await self._orders.list_resting_by_market_for_update(market_id, db)
        settled, payouts = settle_positions(positions, outcome)

        for position in settled:
            await self._positions.finalize(db, position)
        for payout in payouts:
            await self._accounts.credit(
                db, payout.user_id, payout.amount, LedgerEntryType.SETTLEMENT_PAYOUT,
                "MARKET", market_id, f"Resolved {outcome.value}",
            )

        refunded = 0
        for order in resting:
            refund = order.cancel(now)
            await self._orders.update(order, db)
            if refund > 0:
                await self._accounts.credit(
                    db, order.user_id, refund, LedgerEntryType.ORDER_REFUND,
                    "ORDER", order.id, "Market resolved",
                )
            refunded += refund

        await self._markets.mark_resolved(db, market_id, outcome.value, note, now)
        return ResolutionResult(
            market_id=market_id,
            outcome=outcome,
            payouts=payouts,
            cancelled_orders=len(resting),
            refunded_amount=refunded,
        )

    # ------------------------------------------------------------------
    # Market lifecycle
    # ------------------------------------------------------------------

    async def create_market(
        self,
        title: str,
        description: str | None,
        creator_id: str,
        resolution_date: datetime | None,
    ) -> Market:
        market = Market(
            id=generate_id(),
            title=title,
            description=description,
            creator_id=creator_id,
            status=MarketStatus.PROPOSED,
            resolution_date=resolution_date,
        )

        async def work(db: AsyncSession) -> Market:
            return await self._markets.create(db, market)

        created = await run_in_transaction(work, session_factory=self._session_factory)
        logger.info("Market %s proposed by %s", created.id, creator_id)
        return created

    async def transition_market(self, market_id: str, target: str) -> Market:
        """Move a market along the status state machine (never into RESOLVED)."""

        async def work(db: AsyncSession) -> Market:
            market = await self._markets.get_market_for_update(db, market_id)
            if market is None:
                raise MarketNotFoundError(market_id)
            if target not in MarketStatus.__members__ or target == MarketStatus.RESOLVED:
                raise InvalidTransitionError(market.status.value, str(target))
            target_status = MarketStatus(target)
            ensure_transition(market.status, target_status)
            await self._markets.update_status(db, market_id, target_status.value)
            market.status = target_status
            return market

        async with self._market_lock(market_id):
            market = await run_in_transaction(work, session_factory=self._session_factory)
        logger.info("Market %s -> %s", market_id, market.status.value)
        return market

    async def delete_market(self, market_id: str) -> dict[str, Any]:
        """Refund reservations and cost basis, then purge the market and its rows."""

        async def work(db: AsyncSession) -> dict[str, int]:
            market = await self._markets.get_market_for_update(db, market_id)
            if market is None:
                raise MarketNotFoundError(market_id)
            if market.status is MarketStatus.RESOLVED:
                raise MarketInvalidStatusError(market_id, market.status.value, "delete")

            resting = await self._orders.list_resting_by_market_for_update(market_id, db)
            positions = await self._positions.list_by_market_for_update(db, market_id)
            refunds = compute_delete_refunds(resting, positions)

            for user_id, amount in sorted(refunds.items()):
                await self._accounts.credit(
                    db, user_id, amount, LedgerEntryType.MARKET_DELETE_REFUND,
                    "MARKET", market_id, "Market deleted",
                )
            await self._trades.delete_by_market(db, market_id)
            await self._positions.delete_by_market(db, market_id)
            await self._orders.delete_by_market(market_id, db)
            await self._markets.delete(db, market_id)
            return refunds

        async with self._market_lock(market_id):
            refunds = await run_in_transaction(work, session_factory=self._session_factory)
        self._matching_engine().release_market_lock(market_id)
        logger.info(
            "Market %s deleted: refunded %d user(s), total=%d",
            market_id,
            len(refunds),
            sum(refunds.values()),
        )
        return {"market_id": market_id, "refunds": refunds}
