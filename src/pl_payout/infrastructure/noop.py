import logging

from src.pl_common.cents import cents_to_display
from src.pl_payout.domain.trigger import PayoutResult

logger = logging.getLogger(__name__)


class NoopPayoutTrigger:
    """Records the payout in the log only. Used when no webhook is configured."""

    async def payout(
        self, game_id: str, player_id: str, amount_cents: int, reference: str
    ) -> PayoutResult:
        logger.info(
            "payout (noop) game=%s player=%s amount=%s ref=%s",
            game_id, player_id, cents_to_display(amount_cents), reference,
        )
        return PayoutResult(success=True, reference=reference, detail="noop")
