"""Payout Trigger contract.

Invoked once per approved cash-out. Implementations must treat ``reference``
as an idempotency key: calling twice with the same reference pays once.
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class PayoutResult:
    success: bool
    reference: str
    detail: str | None = None


class PayoutTriggerProtocol(Protocol):
    async def payout(
        self, game_id: str, player_id: str, amount_cents: int, reference: str
    ) -> PayoutResult: ...


def payout_reference(request_id: str) -> str:
    return f"cashout-{request_id}"
