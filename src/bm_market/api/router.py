"""bm_market REST endpoints.

GET /markets                          — list with cursor pagination
GET /markets/{market_id}              — full detail
GET /markets/{market_id}/orderbook    — resting orders aggregated per price level
GET /markets/{market_id}/trades       — trade history, newest first
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_common.database import get_db_session
from src.bm_common.response import ApiResponse, request_id_of, success_response
from src.bm_gateway.auth.dependencies import get_current_user
from src.bm_gateway.user.db_models import UserModel
from src.bm_market.application.service import MarketApplicationService

router = APIRouter(prefix="/markets", tags=["markets"])

_service = MarketApplicationService()


@router.get("")
async def list_markets(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    status: str | None = Query(
        None, description="Filter by status. Default: OPEN. Use ALL for no filter."
    ),
    limit: int = Query(20, ge=1, le=100),
    cursor: str | None = Query(None),
) -> ApiResponse:
    result = await _service.list_markets(db, status, cursor, limit)
    return success_response(result.model_dump(), request_id_of(request))


@router.get("/{market_id}")
async def get_market(
    market_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_market(db, market_id)
    return success_response(result.model_dump(), request_id_of(request))


@router.get("/{market_id}/orderbook")
async def get_orderbook(
    market_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    levels: int = Query(10, ge=1, le=99),
) -> ApiResponse:
    result = await _service.get_orderbook(db, market_id, levels)
    return success_response(result.model_dump(), request_id_of(request))


@router.get("/{market_id}/trades")
async def list_trades(
    market_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    limit: int = Query(50, ge=1, le=200),
    cursor: str | None = Query(None, description="Pagination cursor (trade ID)"),
) -> ApiResponse:
    result = await _service.list_trades(db, market_id, limit, cursor)
    return success_response(result.model_dump(), request_id_of(request))
