"""pl_cashout REST endpoints.

POST /cashout-requests                              — submit a cash-out
GET  /games/{game_id}/cashout-requests              — requests + vote counts (?status=)
GET  /games/{game_id}/cashout-requests/mine         — caller's own history
GET  /cashout-requests/{request_id}                 — request + vote counts
POST /cashout-requests/{request_id}/approvals       — approve or dispute
GET  /cashout-requests/{request_id}/approvals       — votes with usernames
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.pl_cashout.application.schemas import (
    ApprovalListResponse,
    ApprovalResponse,
    ApprovalWithUserResponse,
    CashOutRequestListResponse,
    CashOutRequestResponse,
    CastVoteRequest,
    RequestSummaryListResponse,
    RequestSummaryResponse,
    SubmitCashOutRequest,
)
from src.pl_cashout.application.service import get_cashout_service
from src.pl_common.database import get_db_session
from src.pl_common.enums import CashOutStatus
from src.pl_common.response import ApiResponse, success_response
from src.pl_gateway.auth.dependencies import get_current_user
from src.pl_gateway.user.db_models import UserModel

router = APIRouter(tags=["cashout"])


@router.post(
    "/cashout-requests", status_code=status.HTTP_201_CREATED, response_model=ApiResponse
)
async def submit_cashout(
    body: SubmitCashOutRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    service = get_cashout_service()
    cash_out = await service.submit_request(
        db, body.game_id, str(current_user.id), body.chip_count_cents
    )
    return success_response(
        CashOutRequestResponse.from_domain(cash_out).model_dump(),
        request,
        message="Cash-out submitted",
    )


@router.get("/games/{game_id}/cashout-requests", response_model=ApiResponse)
async def list_game_cashouts(
    game_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    status_filter: Annotated[CashOutStatus | None, Query(alias="status")] = None,
) -> ApiResponse:
    service = get_cashout_service()
    summaries = await service.list_game_requests(
        db,
        game_id,
        str(current_user.id),
        status_filter.value if status_filter else None,
    )
    data = RequestSummaryListResponse(
        items=[RequestSummaryResponse.from_summary(s) for s in summaries]
    )
    return success_response(data.model_dump(), request)


@router.get("/games/{game_id}/cashout-requests/mine", response_model=ApiResponse)
async def list_my_cashouts(
    game_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    service = get_cashout_service()
    requests = await service.list_my_requests(db, game_id, str(current_user.id))
    data = CashOutRequestListResponse(
        items=[CashOutRequestResponse.from_domain(r) for r in requests]
    )
    return success_response(data.model_dump(), request)


@router.get("/cashout-requests/{request_id}", response_model=ApiResponse)
async def get_cashout(
    request_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    service = get_cashout_service()
    summary = await service.get_request_summary(db, request_id, str(current_user.id))
    return success_response(RequestSummaryResponse.from_summary(summary).model_dump(), request)


@router.post(
    "/cashout-requests/{request_id}/approvals",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse,
)
async def cast_vote(
    request_id: str,
    body: CastVoteRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    service = get_cashout_service()
    approval = await service.cast_vote(
        db,
        request_id,
        str(current_user.id),
        body.approved,
        body.counter_value_cents,
    )
    return success_response(
        ApprovalResponse.from_domain(approval).model_dump(), request, message="Vote recorded"
    )


@router.get("/cashout-requests/{request_id}/approvals", response_model=ApiResponse)
async def list_votes(
    request_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    service = get_cashout_service()
    views = await service.list_approvals(db, request_id, str(current_user.id))
    data = ApprovalListResponse(items=[ApprovalWithUserResponse.from_view(v) for v in views])
    return success_response(data.model_dump(), request)
