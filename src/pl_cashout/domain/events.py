"""Approval-state events emitted by the cash-out service.

Consumers (payout executor, notification fan-out) subscribe to the
EVENTS_CHANNEL Redis channel; events are published after the transaction
that produced them commits.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Protocol

from src.pl_cashout.domain.models import Approval, CashOutRequest
from src.pl_common.datetime_utils import utc_now
from src.pl_common.enums import CashOutEventType


@dataclass
class CashOutEvent:
    event: CashOutEventType
    request_id: str
    game_id: str
    player_id: str
    status: str
    chip_count_cents: int
    voter_id: str | None = None
    approved: bool | None = None
    counter_value_cents: int | None = None
    occurred_at: str = field(default_factory=lambda: utc_now().isoformat())

    def to_payload(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["event"] = self.event.value
        return payload


def request_event(event: CashOutEventType, request: CashOutRequest) -> CashOutEvent:
    return CashOutEvent(
        event=event,
        request_id=request.id,
        game_id=request.game_id,
        player_id=request.player_id,
        status=request.status,
        chip_count_cents=request.chip_count_cents,
    )


def vote_event(request: CashOutRequest, approval: Approval) -> CashOutEvent:
    evt = request_event(CashOutEventType.VOTE_CAST, request)
    evt.voter_id = approval.approver_id
    evt.approved = approval.approved
    evt.counter_value_cents = approval.counter_value_cents
    return evt


class EventPublisherProtocol(Protocol):
    async def publish(self, events: list[CashOutEvent]) -> None: ...
