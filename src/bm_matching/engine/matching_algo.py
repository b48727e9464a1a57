"""Price-time priority matching of one taker order against opposite-side resting orders.

Pure in-memory walk: it mutates the taker and the candidate orders it fills
and returns one Fill per match. The caller persists the results.
"""
from datetime import datetime

from src.bm_common.cents import fill_cost, prices_cross
from src.bm_matching.domain.models import Fill
from src.bm_order.domain.models import Order


def match_order(
    taker: Order,
    candidates: list[Order],
    now: datetime,
    self_trade_prevention: bool = False,
) -> list[Fill]:
    """Fill `taker` against `candidates` until it is exhausted or none remain.

    Candidates are walked price ASC, created_at ASC, id ASC. A candidate that
    does not cross, is on the same side, is no longer resting, or (with
    self-trade prevention) belongs to the taker's user is skipped untouched.
    """
    fills: list[Fill] = []
    for resting in sorted(candidates, key=lambda o: o.priority_key):
        if taker.remaining_amount == 0:
            break
        if not resting.is_resting or resting.side is taker.side:
            continue
        if not prices_cross(taker.price_cents, resting.price_cents):
            continue
        if self_trade_prevention and resting.user_id == taker.user_id:
            continue

        amount = min(taker.remaining_amount, resting.remaining_amount)
        fills.append(
            Fill(
                maker_order_id=resting.id,
                maker_user_id=resting.user_id,
                maker_side=resting.side,
                maker_price=resting.price_cents,
                amount=amount,
                taker_cost=fill_cost(taker.price_cents, amount),
                maker_cost=amount,
            )
        )
        taker.apply_fill(amount, now)
        resting.apply_fill(amount, now)
    return fills
