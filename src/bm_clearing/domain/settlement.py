"""Market settlement arithmetic — pure functions over Position and Order values.

Winning shares pay 1 cent per unit. INVALID returns cost basis (principal),
never face value.
"""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, replace

from src.bm_account.domain.models import Position
from src.bm_common.enums import ResolutionOutcome
from src.bm_order.domain.models import Order


@dataclass(frozen=True)
class Payout:
    user_id: str
    amount: int  # cents


def compute_payout(position: Position, outcome: ResolutionOutcome) -> int:
    if outcome is ResolutionOutcome.YES:
        return position.yes_shares
    if outcome is ResolutionOutcome.NO:
        return position.no_shares
    return position.total_cost_basis


def settle_position(position: Position, outcome: ResolutionOutcome) -> Position:
    """Return the finalized position: value fixed at the payout, flagged settled."""
    payout = compute_payout(position, outcome)
    return replace(
        position,
        current_value=payout,
        unrealized_pnl=payout - position.total_cost_basis,
        settled=True,
    )


def settle_positions(
    positions: Iterable[Position], outcome: ResolutionOutcome
) -> tuple[list[Position], list[Payout]]:
    """Finalize every position; payouts list only the positive amounts."""
    settled: list[Position] = []
    payouts: list[Payout] = []
    for position in positions:
        final = settle_position(position, outcome)
        settled.append(final)
        if final.current_value:
            payouts.append(Payout(user_id=final.user_id, amount=final.current_value))
    return settled, payouts


def compute_delete_refunds(
    resting_orders: Iterable[Order], positions: Iterable[Position]
) -> dict[str, int]:
    """Per-user refund when a market is deleted: reservations plus cost basis."""
    refunds: dict[str, int] = defaultdict(int)
    for order in resting_orders:
        refunds[order.user_id] += order.remaining_amount
    for position in positions:
        refunds[position.user_id] += position.total_cost_basis
    return {user_id: amount for user_id, amount in refunds.items() if amount > 0}
