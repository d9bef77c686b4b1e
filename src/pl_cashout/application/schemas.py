"""Pydantic schemas for pl_cashout API requests and responses."""

from pydantic import BaseModel, Field

from src.pl_cashout.domain.models import (
    Approval,
    ApprovalView,
    CashOutRequest,
    RequestSummary,
)
from src.pl_common.cents import MAX_CENTS, cents_to_display
from src.pl_common.datetime_utils import iso_or_none

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class SubmitCashOutRequest(BaseModel):
    game_id: str = Field(..., min_length=1, max_length=64)
    chip_count_cents: int = Field(
        ..., ge=0, le=MAX_CENTS, description="Declared final chip count in cents"
    )


class CastVoteRequest(BaseModel):
    approved: bool
    counter_value_cents: int | None = Field(
        None,
        ge=0,
        le=MAX_CENTS,
        description="Voter's own count, only kept when approved is false",
    )


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class CashOutRequestResponse(BaseModel):
    id: str
    game_id: str
    player_id: str
    chip_count_cents: int
    chip_count_display: str
    status: str
    superseded_by: str | None
    created_at: str | None
    updated_at: str | None

    @classmethod
    def from_domain(cls, r: CashOutRequest) -> "CashOutRequestResponse":
        return cls(
            id=r.id,
            game_id=r.game_id,
            player_id=r.player_id,
            chip_count_cents=r.chip_count_cents,
            chip_count_display=cents_to_display(r.chip_count_cents),
            status=r.status,
            superseded_by=r.superseded_by,
            created_at=iso_or_none(r.created_at),
            updated_at=iso_or_none(r.updated_at),
        )


class CashOutRequestListResponse(BaseModel):
    items: list[CashOutRequestResponse]


class RequestSummaryResponse(CashOutRequestResponse):
    submitter_user_id: str | None
    submitter_username: str
    total_votes: int
    approval_count: int
    dispute_count: int
    eligible_voters: int
    missing_player_ids: list[str]
    banker_pending: bool
    has_voted: bool

    @classmethod
    def from_summary(cls, s: RequestSummary) -> "RequestSummaryResponse":
        base = CashOutRequestResponse.from_domain(s.request)
        t = s.tally
        return cls(
            **base.model_dump(),
            submitter_user_id=s.submitter_user_id,
            submitter_username=s.submitter_username,
            total_votes=t.total_votes,
            approval_count=t.approvals,
            dispute_count=t.disputes,
            eligible_voters=t.eligible_voters,
            missing_player_ids=t.missing_player_ids,
            banker_pending=t.banker_pending,
            has_voted=t.viewer_has_voted,
        )


class RequestSummaryListResponse(BaseModel):
    items: list[RequestSummaryResponse]


class ApprovalResponse(BaseModel):
    id: str
    request_id: str
    approver_id: str
    voter_role: str
    approved: bool
    counter_value_cents: int | None
    created_at: str | None

    @classmethod
    def from_domain(cls, a: Approval) -> "ApprovalResponse":
        return cls(
            id=a.id,
            request_id=a.request_id,
            approver_id=a.approver_id,
            voter_role=a.voter_role,
            approved=a.approved,
            counter_value_cents=a.counter_value_cents,
            created_at=iso_or_none(a.created_at),
        )


class ApprovalWithUserResponse(ApprovalResponse):
    username: str

    @classmethod
    def from_view(cls, view: ApprovalView) -> "ApprovalWithUserResponse":
        base = ApprovalResponse.from_domain(view.approval)
        return cls(**base.model_dump(), username=view.username)


class ApprovalListResponse(BaseModel):
    items: list[ApprovalWithUserResponse]
