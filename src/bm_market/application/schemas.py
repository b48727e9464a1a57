"""Pydantic schemas for bm_market API responses.

Cursor format for markets (VARCHAR PK, listed newest first):
  {"ts": "<created_at ISO>", "id": "<market_id>"}
  Encoded as Base64 JSON string.
"""

import base64
import json

from pydantic import BaseModel

from src.bm_common.cents import cents_to_display
from src.bm_common.datetime_utils import iso_or_none
from src.bm_market.domain.models import Market, OrderBookSnapshot, PriceLevel

# ---------------------------------------------------------------------------
# Cursor utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_market: Market) -> str:
    """Encode composite cursor from last market in page."""
    payload = {
        "ts": last_market.created_at.isoformat() if last_market.created_at else None,
        "id": last_market.id,
    }
    return base64.b64encode(json.dumps(payload).encode()).decode()


def cursor_decode(cursor: str | None) -> tuple[str | None, str | None]:
    """Decode composite cursor -> (ts_iso, market_id), or (None, None) on error."""
    if cursor is None:
        return None, None
    try:
        data = json.loads(base64.b64decode(cursor.encode()).decode())
        return data["ts"], data["id"]
    except (ValueError, KeyError, TypeError):
        return None, None


# ---------------------------------------------------------------------------
# Market
# ---------------------------------------------------------------------------


class MarketDetail(BaseModel):
    id: str
    title: str
    description: str | None
    creator_id: str | None
    status: str
    last_yes_price: int | None
    last_no_price: int | None
    total_volume_cents: int
    total_volume_display: str
    total_yes_shares: int
    total_no_shares: int
    resolution_outcome: str | None
    resolution_note: str | None
    resolution_date: str | None
    resolved_at: str | None
    created_at: str | None

    @classmethod
    def from_domain(cls, m: Market) -> "MarketDetail":
        return cls(
            id=m.id,
            title=m.title,
            description=m.description,
            creator_id=m.creator_id,
            status=m.status.value,
            last_yes_price=m.last_yes_price,
            last_no_price=m.last_no_price,
            total_volume_cents=m.total_volume,
            total_volume_display=cents_to_display(m.total_volume),
            total_yes_shares=m.total_yes_shares,
            total_no_shares=m.total_no_shares,
            resolution_outcome=m.resolution_outcome,
            resolution_note=m.resolution_note,
            resolution_date=iso_or_none(m.resolution_date),
            resolved_at=iso_or_none(m.resolved_at),
            created_at=iso_or_none(m.created_at),
        )


class MarketListResponse(BaseModel):
    items: list[MarketDetail]
    next_cursor: str | None
    has_more: bool


# ---------------------------------------------------------------------------
# Order book
# ---------------------------------------------------------------------------


class PriceLevelOut(BaseModel):
    price_cents: int
    total_amount: int
    order_count: int

    @classmethod
    def from_domain(cls, lv: PriceLevel) -> "PriceLevelOut":
        return cls(
            price_cents=lv.price_cents,
            total_amount=lv.total_amount,
            order_count=lv.order_count,
        )


class OrderBookResponse(BaseModel):
    market_id: str
    yes: list[PriceLevelOut]  # best (highest) price first
    no: list[PriceLevelOut]   # best (highest) price first
    last_yes_price: int | None
    last_no_price: int | None
    updated_at: str

    @classmethod
    def from_snapshot(cls, snap: OrderBookSnapshot) -> "OrderBookResponse":
        return cls(
            market_id=snap.market_id,
            yes=[PriceLevelOut.from_domain(lv) for lv in snap.yes_levels],
            no=[PriceLevelOut.from_domain(lv) for lv in snap.no_levels],
            last_yes_price=snap.last_yes_price,
            last_no_price=snap.last_no_price,
            updated_at=snap.updated_at.isoformat(),
        )
