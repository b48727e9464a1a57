# src/bm_account/api/positions_router.py
"""Positions REST API — 2 endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_account.application.service import AccountApplicationService
from src.bm_common.database import get_db_session
from src.bm_common.response import ApiResponse, request_id_of, success_response
from src.bm_gateway.auth.dependencies import get_current_user
from src.bm_gateway.user.db_models import UserModel

router = APIRouter(prefix="/positions", tags=["positions"])
_service = AccountApplicationService()


@router.get("")
async def list_positions(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.list_positions(db, current_user.id)
    return success_response(data.model_dump(), request_id_of(request))


@router.get("/{market_id}")
async def get_position(
    market_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_position(db, current_user.id, market_id)
    return success_response(data.model_dump(), request_id_of(request))
