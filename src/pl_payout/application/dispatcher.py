"""PayoutDispatcher — best-effort invocation of the payout trigger.

Called once, after the approving transaction has committed. The approval is
a durable record of consensus regardless of what happens here: failures
(exception, timeout, success=False) are logged and published on
PAYOUT_ALERT_CHANNEL for the operator / retry tooling, never raised.
"""

import asyncio
import logging
from typing import Any

from redis.exceptions import RedisError

from config.settings import settings
from src.pl_common.datetime_utils import utc_now
from src.pl_common.redis_client import publish_json
from src.pl_payout.domain.trigger import (
    PayoutResult,
    PayoutTriggerProtocol,
    payout_reference,
)
from src.pl_payout.infrastructure.noop import NoopPayoutTrigger
from src.pl_payout.infrastructure.webhook import WebhookPayoutTrigger

logger = logging.getLogger(__name__)


def build_payout_trigger() -> PayoutTriggerProtocol:
    if settings.PAYOUT_WEBHOOK_URL:
        return WebhookPayoutTrigger(
            settings.PAYOUT_WEBHOOK_URL, settings.PAYOUT_TIMEOUT_SECONDS
        )
    return NoopPayoutTrigger()


async def _publish_alert(payload: dict[str, Any]) -> None:
    try:
        await publish_json(settings.PAYOUT_ALERT_CHANNEL, payload)
    except (RedisError, OSError):
        logger.exception("failed to publish payout alert %s", payload)


class PayoutDispatcher:
    def __init__(
        self,
        trigger: PayoutTriggerProtocol | None = None,
        timeout_seconds: float | None = None,
        alert_sink: Any = None,
    ) -> None:
        self._trigger: PayoutTriggerProtocol = trigger or build_payout_trigger()
        self._timeout = timeout_seconds or settings.PAYOUT_TIMEOUT_SECONDS
        self._alert = alert_sink or _publish_alert

    async def dispatch(
        self, game_id: str, player_id: str, amount_cents: int, request_id: str
    ) -> PayoutResult:
        reference = payout_reference(request_id)
        try:
            result = await asyncio.wait_for(
                self._trigger.payout(game_id, player_id, amount_cents, reference),
                timeout=self._timeout,
            )
        except TimeoutError:
            result = PayoutResult(
                success=False, reference=reference, detail=f"timed out after {self._timeout}s"
            )
        except Exception as exc:
            logger.exception("payout trigger raised for %s", reference)
            result = PayoutResult(success=False, reference=reference, detail=repr(exc))

        if result.success:
            logger.info("payout dispatched: %s (%d cents)", result.reference, amount_cents)
        else:
            logger.error("payout failed: %s (%s)", reference, result.detail)
            await self._alert({
                "event": "payout.failed",
                "reference": reference,
                "request_id": request_id,
                "game_id": game_id,
                "player_id": player_id,
                "amount_cents": amount_cents,
                "detail": result.detail,
                "occurred_at": utc_now().isoformat(),
            })
        return result
