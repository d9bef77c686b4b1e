"""Domain models for pl_cashout — pure dataclasses, no business logic."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class CashOutRequest:
    id: str
    game_id: str
    player_id: str
    chip_count_cents: int
    status: str                         # CashOutStatus value
    superseded_by: str | None = None    # newer request that replaced this disputed one
    eligible_voters: int | None = None  # voter-set size frozen when the request left PENDING
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class Approval:
    id: str
    request_id: str
    approver_id: str                    # user id
    voter_role: str                     # VoterRole value
    approved: bool
    counter_value_cents: int | None = None   # only kept when approved is False
    created_at: datetime | None = None


@dataclass(frozen=True)
class VoterSet:
    """Identities whose approval a request needs, computed at evaluation time.

    player_user_ids: eligible players (status != CASHED_OUT, submitter excluded)
    banker_address:  set when the banker must vote in addition to the players
    """

    player_user_ids: frozenset[str]
    banker_address: str | None = None

    @property
    def size(self) -> int:
        return len(self.player_user_ids) + (1 if self.banker_address else 0)


@dataclass
class VoteTally:
    total_votes: int
    approvals: int
    disputes: int
    eligible_voters: int
    missing_player_ids: list[str] = field(default_factory=list)
    banker_pending: bool = False
    viewer_has_voted: bool = False


@dataclass
class RequestSummary:
    """A request as shown to voters: submitter name plus current tally."""

    request: CashOutRequest
    submitter_user_id: str | None
    submitter_username: str
    tally: VoteTally


@dataclass
class ApprovalView:
    approval: Approval
    username: str
