"""MatchingEngine — per-market orchestrator for order submission and cancellation.

Each operation is one `run_in_transaction` unit of work: every row it will
write is read first (market, taker balance, counter-orders, positions, all
FOR UPDATE), the fills are computed in memory, and only then are the writes
issued. A retried attempt recomputes everything from a fresh read.
"""
import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bm_account.domain.models import Position, PositionDelta, apply_position_delta
from src.bm_account.domain.repository import (
    AccountRepositoryProtocol,
    PositionRepositoryProtocol,
)
from src.bm_account.infrastructure.persistence import AccountRepository
from src.bm_account.infrastructure.positions_repository import PositionRepository
from src.bm_clearing.domain.repository import TradesRepositoryProtocol
from src.bm_clearing.infrastructure.trades_repository import TradesRepository
from src.bm_common.cents import complement_price, validate_price
from src.bm_common.database import run_in_transaction
from src.bm_common.datetime_utils import utc_now
from src.bm_common.enums import LedgerEntryType, OrderSide
from src.bm_common.errors import (
    AmountOutOfRangeError,
    InsufficientBalanceError,
    InvalidSideError,
    MarketNotFoundError,
    OrderForbiddenError,
    OrderNotCancellableError,
    OrderNotFoundError,
    PriceOutOfRangeError,
    UserNotFoundError,
)
from src.bm_common.id_generator import generate_id
from src.bm_market.domain.repository import MarketRepositoryProtocol
from src.bm_market.domain.state_machine import ensure_tradable
from src.bm_market.infrastructure.persistence import MarketRepository
from src.bm_matching.domain.models import CancelResult, Fill, MatchResult, Trade
from src.bm_matching.engine.matching_algo import match_order
from src.bm_order.domain.models import Order
from src.bm_order.domain.repository import OrderRepositoryProtocol
from src.bm_order.infrastructure.persistence import OrderRepository

logger = logging.getLogger(__name__)


class MatchingEngine:
    def __init__(
        self,
        order_repo: OrderRepositoryProtocol | None = None,
        account_repo: AccountRepositoryProtocol | None = None,
        position_repo: PositionRepositoryProtocol | None = None,
        market_repo: MarketRepositoryProtocol | None = None,
        trades_repo: TradesRepositoryProtocol | None = None,
        session_factory: Callable[[], AsyncSession] | None = None,
        min_amount: int | None = None,
        max_amount: int | None = None,
        self_trade_prevention: bool | None = None,
    ) -> None:
        self._orders: OrderRepositoryProtocol = order_repo or OrderRepository()
        self._accounts: AccountRepositoryProtocol = account_repo or AccountRepository()
        self._positions: PositionRepositoryProtocol = position_repo or PositionRepository()
        self._markets: MarketRepositoryProtocol = market_repo or MarketRepository()
        self._trades: TradesRepositoryProtocol = trades_repo or TradesRepository()
        self._session_factory = session_factory
        self._min_amount = min_amount if min_amount is not None else settings.MIN_ORDER_AMOUNT_CENTS
        self._max_amount = max_amount if max_amount is not None else settings.MAX_ORDER_AMOUNT_CENTS
        self._self_trade_prevention = (
            settings.SELF_TRADE_PREVENTION
            if self_trade_prevention is None
            else self_trade_prevention
        )
        self._market_locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def market_lock(self, market_id: str) -> asyncio.Lock:
        """In-process serialisation of market-scoped transactions."""
        return self._market_locks[market_id]

    def release_market_lock(self, market_id: str) -> None:
        """Drop the lock of a market that can no longer trade (resolved or deleted)."""
        lock = self._market_locks.get(market_id)
        if lock is not None and not lock.locked():
            del self._market_locks[market_id]

    @property
    def tracked_markets(self) -> frozenset[str]:
        return frozenset(self._market_locks)

    # ------------------------------------------------------------------
    # submitOrder
    # ------------------------------------------------------------------

    async def submit_order(
        self,
        user_id: str,
        market_id: str,
        side: OrderSide | str,
        price_cents: int,
        amount: int,
    ) -> MatchResult:
        """Match a new order against the book; any remainder rests at its limit.

        The full `amount` must be available up front. Fills are paid at the
        taker's own limit. An unfilled remainder becomes a new OPEN order that
        carries the reservation; the taker record keeps only the filled part.
        """
        try:
            order_side = OrderSide(side)
        except ValueError:
            raise InvalidSideError(str(side)) from None
        try:
            validate_price(price_cents)
        except ValueError:
            raise PriceOutOfRangeError(price_cents) from None
        if not (self._min_amount <= amount <= self._max_amount):
            raise AmountOutOfRangeError(amount, self._min_amount, self._max_amount)

        async def work(db: AsyncSession) -> MatchResult:
            return await self._submit_in_tx(
                db, user_id, market_id, order_side, price_cents, amount
            )

        async with self.market_lock(market_id):
            result = await run_in_transaction(work, session_factory=self._session_factory)

        logger.info(
            "Order %s accepted: market=%s user=%s %s@%d amount=%d fills=%d resting=%d",
            result.order.id,
            market_id,
            user_id,
            order_side.value,
            price_cents,
            amount,
            len(result.trades),
            result.resting_order.remaining_amount if result.resting_order else 0,
        )
        return result

    async def _submit_in_tx(
        self,
        db: AsyncSession,
        user_id: str,
        market_id: str,
        side: OrderSide,
        price_cents: int,
        amount: int,
    ) -> MatchResult:
        now = utc_now()

        # --- reads -------------------------------------------------------
        market = await self._markets.get_market_for_update(db, market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        ensure_tradable(market)

        account = await self._accounts.get_account_for_update(db, user_id)
        if account is None:
            raise UserNotFoundError(user_id)
        if account.balance < amount:
            raise InsufficientBalanceError(amount, account.balance)

        candidates = await self._orders.list_counter_orders_for_update(
            market_id, side.opposite, complement_price(price_cents), db
        )
        taker = Order(
            id=generate_id(),
            market_id=market_id,
            user_id=user_id,
            side=side,
            price_cents=price_cents,
            original_amount=amount,
            remaining_amount=amount,
            created_at=now,
            updated_at=now,
        )
        fills = match_order(taker, candidates, now, self._self_trade_prevention)

        positions: dict[str, Position] = {}
        if fills:
            positions = await self._positions.get_many_for_update(
                db, market_id, {user_id} | {f.maker_user_id for f in fills}
            )

        if not fills:
            resting: Order | None = taker
        elif taker.remaining_amount > 0:
            resting = taker.split_remainder(generate_id(), now)
        else:
            resting = None

        # --- writes ------------------------------------------------------
        trade_payment = sum(f.taker_cost for f in fills)
        if trade_payment > 0:
            await self._accounts.debit(
                db, user_id, trade_payment, LedgerEntryType.TRADE_PAYMENT,
                "ORDER", taker.id, f"{len(fills)} fill(s) at {price_cents}c",
            )
        if resting is not None:
            await self._accounts.debit(
                db, user_id, resting.remaining_amount, LedgerEntryType.ORDER_RESERVE,
                "ORDER", resting.id, "Resting order reservation",
            )

        await self._orders.save(taker, db)
        if resting is not None and resting is not taker:
            await self._orders.save(resting, db)
        filled_makers = {f.maker_order_id for f in fills}
        for maker in candidates:
            if maker.id in filled_makers:
                await self._orders.update(maker, db)

        for position in _apply_fills(taker, fills, positions).values():
            await self._positions.save(db, position)

        trades: list[Trade] = []
        for fill in fills:
            trade = Trade.from_fill(generate_id(), taker, fill, now)
            await self._trades.insert(db, trade)
            market.record_trade(trade.yes_price, trade.shares_traded)
            trades.append(trade)
        if trades:
            await self._markets.save_trade_stats(db, market)

        return MatchResult(order=taker, trades=trades, resting_order=resting)

    # ------------------------------------------------------------------
    # cancelOrder
    # ------------------------------------------------------------------

    async def cancel_order(self, user_id: str, order_id: str) -> CancelResult:
        """Cancel a resting order and refund its remaining reservation."""

        async def work(db: AsyncSession) -> CancelResult:
            return await self._cancel_in_tx(db, user_id, order_id)

        result = await run_in_transaction(work, session_factory=self._session_factory)
        logger.info(
            "Order %s cancelled by %s: refunded=%d", order_id, user_id, result.refunded_amount
        )
        return result

    async def _cancel_in_tx(
        self, db: AsyncSession, user_id: str, order_id: str
    ) -> CancelResult:
        order = await self._orders.get_by_id_for_update(order_id, db)
        if order is None:
            raise OrderNotFoundError(order_id)
        if order.user_id != user_id:
            raise OrderForbiddenError(order_id)
        if not order.is_cancellable:
            raise OrderNotCancellableError(order_id, order.status.value)

        refund = order.cancel(utc_now())
        await self._orders.update(order, db)
        if refund > 0:
            await self._accounts.credit(
                db, order.user_id, refund, LedgerEntryType.ORDER_REFUND,
                "ORDER", order.id, "Order cancelled",
            )
        return CancelResult(order_id=order.id, refunded_amount=refund)


def _apply_fills(
    taker: Order, fills: list[Fill], positions: dict[str, Position]
) -> dict[str, Position]:
    """Fold every fill into the pre-fetched positions; returns only touched rows."""
    touched: dict[str, Position] = {}

    def bump(user_id: str, delta: PositionDelta) -> None:
        current = touched.get(user_id) or positions.get(user_id) or Position(
            user_id=user_id, market_id=taker.market_id
        )
        touched[user_id] = apply_position_delta(current, delta)

    for fill in fills:
        bump(taker.user_id, PositionDelta(taker.side, fill.amount, fill.taker_cost))
        bump(fill.maker_user_id, PositionDelta(fill.maker_side, fill.amount, fill.maker_cost))
    return touched
