"""Redis Pub/Sub publisher for cash-out events.

Publishing happens after commit. A publish failure is logged with the event
payload and does not affect the committed state.
"""

import logging

from redis.exceptions import RedisError

from config.settings import settings
from src.pl_cashout.domain.events import CashOutEvent
from src.pl_common.redis_client import publish_json

logger = logging.getLogger(__name__)


class RedisEventPublisher:
    def __init__(self, channel: str | None = None) -> None:
        self._channel = channel or settings.EVENTS_CHANNEL

    async def publish(self, events: list[CashOutEvent]) -> None:
        for evt in events:
            payload = evt.to_payload()
            try:
                await publish_json(self._channel, payload)
            except (RedisError, OSError):
                logger.exception("failed to publish %s for request %s: %s",
                                 evt.event.value, evt.request_id, payload)
