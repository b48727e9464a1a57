"""bm_account REST API — balance, deposit and ledger for the calling user."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_account.application.schemas import DepositRequest
from src.bm_account.application.service import AccountApplicationService
from src.bm_common.database import get_db_session
from src.bm_common.response import ApiResponse, request_id_of, success_response
from src.bm_gateway.auth.dependencies import get_current_user
from src.bm_gateway.user.db_models import UserModel

router = APIRouter(prefix="/account", tags=["account"])

_service = AccountApplicationService()


@router.get("/balance")
async def get_balance(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_balance(db, current_user.id)
    return success_response(data.model_dump(), request_id_of(request))


@router.post("/deposit")
async def deposit(
    body: DepositRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    request: Request,
) -> ApiResponse:
    data = await _service.deposit(current_user.id, body.amount_cents)
    return success_response(data.model_dump(), request_id_of(request))


@router.get("/ledger")
async def list_ledger(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    entry_type: str | None = Query(None, description="Filter by LedgerEntryType"),
) -> ApiResponse:
    data = await _service.list_ledger(db, current_user.id, cursor, limit, entry_type)
    return success_response(data.model_dump(), request_id_of(request))
