# src/bm_clearing/application/trades_schemas.py
"""Pydantic schemas for trades API."""
from pydantic import BaseModel


class TradeResponse(BaseModel):
    id: str
    market_id: str
    taker_order_id: str
    maker_order_id: str
    taker_side: str
    yes_user_id: str
    no_user_id: str
    yes_price: int
    no_price: int
    shares_traded: int
    total_amount: int
    executed_at: str | None


class TradeListResponse(BaseModel):
    items: list[TradeResponse]
    has_more: bool
    next_cursor: str | None
