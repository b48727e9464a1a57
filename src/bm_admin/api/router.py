# src/bm_admin/api/router.py
"""Admin REST API. Every route requires users.is_admin."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from src.bm_admin.application.schemas import (
    CreateMarketRequest,
    DeleteMarketResponse,
    ResolveRequest,
    ResolveResponse,
    TransitionRequest,
)
from src.bm_admin.application.service import AdminService
from src.bm_common.response import ApiResponse, request_id_of, success_response
from src.bm_gateway.auth.dependencies import require_admin
from src.bm_gateway.user.db_models import UserModel
from src.bm_market.application.schemas import MarketDetail

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


@router.post("/markets", status_code=status.HTTP_201_CREATED)
async def create_market(
    body: CreateMarketRequest,
    request: Request,
    admin: Annotated[UserModel, Depends(require_admin)],
) -> ApiResponse:
    market = await _service.create_market(
        body.title, body.description, admin.id, body.resolution_date
    )
    return success_response(MarketDetail.from_domain(market).model_dump(), request_id_of(request))


@router.post("/markets/{market_id}/status")
async def transition_market(
    market_id: str,
    body: TransitionRequest,
    request: Request,
    admin: Annotated[UserModel, Depends(require_admin)],
) -> ApiResponse:
    market = await _service.transition_market(market_id, body.status)
    return success_response(MarketDetail.from_domain(market).model_dump(), request_id_of(request))


@router.post("/markets/{market_id}/resolve")
async def resolve_market(
    market_id: str,
    body: ResolveRequest,
    request: Request,
    admin: Annotated[UserModel, Depends(require_admin)],
) -> ApiResponse:
    result = await _service.resolve_market(market_id, body.outcome, body.note)
    return success_response(
        ResolveResponse.from_result(result).model_dump(), request_id_of(request)
    )


@router.delete("/markets/{market_id}")
async def delete_market(
    market_id: str,
    request: Request,
    admin: Annotated[UserModel, Depends(require_admin)],
) -> ApiResponse:
    result = await _service.delete_market(market_id)
    data = DeleteMarketResponse(
        market_id=result["market_id"],
        refunds=result["refunds"],
        total_refunded_cents=sum(result["refunds"].values()),
    )
    return success_response(data.model_dump(), request_id_of(request))
