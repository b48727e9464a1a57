"""Domain models for bm_market — pure dataclasses."""

from dataclasses import dataclass
from datetime import datetime

from src.bm_common.cents import complement_price
from src.bm_common.enums import MarketStatus


@dataclass
class Market:
    id: str
    title: str
    status: MarketStatus
    description: str | None = None
    creator_id: str | None = None
    # Last traded price pair; yes + no == 100 once the first trade happens
    last_yes_price: int | None = None
    last_no_price: int | None = None
    total_volume: int = 0      # cents
    total_yes_shares: int = 0  # share units minted
    total_no_shares: int = 0
    resolution_outcome: str | None = None
    resolution_note: str | None = None
    resolution_date: datetime | None = None
    resolved_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        self.status = MarketStatus(self.status)

    def record_trade(self, yes_price: int, shares: int) -> None:
        """Roll one fill into the market aggregates.

        A matched pair always mints one YES and one NO unit per cent of fill.
        """
        self.last_yes_price = yes_price
        self.last_no_price = complement_price(yes_price)
        self.total_volume += shares
        self.total_yes_shares += shares
        self.total_no_shares += shares


@dataclass
class PriceLevel:
    """Single price level of one side of the book."""

    price_cents: int
    total_amount: int
    order_count: int


@dataclass
class OrderBookSnapshot:
    market_id: str
    yes_levels: list[PriceLevel]  # descending by price
    no_levels: list[PriceLevel]   # descending by price
    last_yes_price: int | None
    last_no_price: int | None
    updated_at: datetime
