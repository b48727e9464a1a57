"""Domain models for bm_account — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, replace
from datetime import datetime

from src.bm_common.enums import OrderSide


@dataclass
class Account:
    user_id: str
    balance: int  # cents, spendable; resting-order reservations already deducted
    is_admin: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


def position_id(user_id: str, market_id: str) -> str:
    """Primary key of a position row: one row per (user, market)."""
    return f"{user_id}_{market_id}"


@dataclass
class Position:
    user_id: str
    market_id: str
    yes_shares: int = 0
    no_shares: int = 0
    yes_cost_basis: int = 0  # cents actually committed for the YES shares
    no_cost_basis: int = 0   # cents actually committed for the NO shares
    current_value: int | None = None   # set at resolution
    unrealized_pnl: int | None = None  # set at resolution
    settled: bool = False
    updated_at: datetime | None = None

    @property
    def id(self) -> str:
        return position_id(self.user_id, self.market_id)

    @property
    def total_cost_basis(self) -> int:
        return self.yes_cost_basis + self.no_cost_basis


@dataclass(frozen=True)
class PositionDelta:
    """Shares and cost bought on exactly one side by a single fill."""

    side: OrderSide
    shares: int
    cost: int

    def __post_init__(self) -> None:
        if self.shares < 0 or self.cost < 0:
            raise ValueError("Position deltas never decrease holdings")


def apply_position_delta(position: Position, delta: PositionDelta) -> Position:
    """Return a new Position with `delta` added on its side; the input is untouched."""
    if position.settled:
        raise ValueError(f"Position {position.id} is settled and immutable")
    if delta.side is OrderSide.YES:
        return replace(
            position,
            yes_shares=position.yes_shares + delta.shares,
            yes_cost_basis=position.yes_cost_basis + delta.cost,
        )
    return replace(
        position,
        no_shares=position.no_shares + delta.shares,
        no_cost_basis=position.no_cost_basis + delta.cost,
    )


@dataclass
class LedgerEntry:
    id: int                          # BIGSERIAL
    user_id: str
    entry_type: str                  # LedgerEntryType value
    amount: int                      # cents, positive=credit negative=debit
    balance_after: int               # cents, balance snapshot after op
    reference_type: str | None = None
    reference_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None
