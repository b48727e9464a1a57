"""Pydantic schemas for the admin API."""
from datetime import datetime

from pydantic import BaseModel, Field

from src.bm_admin.application.service import ResolutionResult


class CreateMarketRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=256)
    description: str | None = None
    resolution_date: datetime | None = None


class TransitionRequest(BaseModel):
    status: str


class ResolveRequest(BaseModel):
    outcome: str
    note: str | None = Field(None, max_length=1024)


class PayoutOut(BaseModel):
    user_id: str
    amount_cents: int


class ResolveResponse(BaseModel):
    market_id: str
    outcome: str
    payouts: list[PayoutOut]
    total_payout_cents: int
    cancelled_orders: int
    refunded_amount_cents: int

    @classmethod
    def from_result(cls, r: ResolutionResult) -> "ResolveResponse":
        return cls(
            market_id=r.market_id,
            outcome=r.outcome.value,
            payouts=[PayoutOut(user_id=p.user_id, amount_cents=p.amount) for p in r.payouts],
            total_payout_cents=sum(p.amount for p in r.payouts),
            cancelled_orders=r.cancelled_orders,
            refunded_amount_cents=r.refunded_amount,
        )


class DeleteMarketResponse(BaseModel):
    market_id: str
    refunds: dict[str, int]  # user_id -> cents
    total_refunded_cents: int
