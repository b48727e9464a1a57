# src/bm_order/api/router.py
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_common.database import get_db_session
from src.bm_common.response import ApiResponse, request_id_of, success_response
from src.bm_gateway.auth.dependencies import get_current_user
from src.bm_gateway.user.db_models import UserModel
from src.bm_order.application import service as svc
from src.bm_order.application.schemas import PlaceOrderRequest

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", status_code=201)
async def place_order(
    req: PlaceOrderRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
) -> ApiResponse:
    data = await svc.place_order(req, current_user.id)
    return success_response(data.model_dump(), request_id_of(request))


@router.post("/{order_id}/cancel")
async def cancel_order(
    order_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
) -> ApiResponse:
    data = await svc.cancel_order(order_id, current_user.id)
    return success_response(data.model_dump(), request_id_of(request))


@router.get("")
async def list_orders(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    market_id: str | None = Query(None, description="Filter by market ID"),
    status: str | None = Query(None, description="Filter by order status"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    cursor: str | None = Query(None, description="Pagination cursor (order ID)"),
) -> ApiResponse:
    data = await svc.list_orders(current_user.id, market_id, status, limit, cursor, db)
    return success_response(data.model_dump(), request_id_of(request))


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await svc.get_order(order_id, current_user.id, db)
    return success_response(data.model_dump(), request_id_of(request))
