# src/bm_account/application/positions_schemas.py
"""Pydantic schemas for positions API."""
from pydantic import BaseModel

from src.bm_account.domain.models import Position
from src.bm_common.datetime_utils import iso_or_none


class PositionResponse(BaseModel):
    market_id: str
    yes_shares: int
    no_shares: int
    yes_cost_basis: int
    no_cost_basis: int
    current_value: int | None
    unrealized_pnl: int | None
    settled: bool
    updated_at: str | None

    @classmethod
    def from_domain(cls, p: Position) -> "PositionResponse":
        return cls(
            market_id=p.market_id,
            yes_shares=p.yes_shares,
            no_shares=p.no_shares,
            yes_cost_basis=p.yes_cost_basis,
            no_cost_basis=p.no_cost_basis,
            current_value=p.current_value,
            unrealized_pnl=p.unrealized_pnl,
            settled=p.settled,
            updated_at=iso_or_none(p.updated_at),
        )


class PositionListResponse(BaseModel):
    items: list[PositionResponse]
    total: int
