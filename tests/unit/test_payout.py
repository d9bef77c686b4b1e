"""Unit tests for payout triggers and PayoutDispatcher."""

import asyncio
import json
from unittest.mock import AsyncMock, patch

import httpx

from src.pl_payout.application.dispatcher import PayoutDispatcher, build_payout_trigger
from src.pl_payout.domain.trigger import PayoutResult, payout_reference
from src.pl_payout.infrastructure.noop import NoopPayoutTrigger
from src.pl_payout.infrastructure.webhook import WebhookPayoutTrigger


def test_reference_is_derived_from_request_id() -> None:
    assert payout_reference("12345") == "cashout-12345"


class TestNoopTrigger:
    async def test_always_succeeds(self) -> None:
        result = await NoopPayoutTrigger().payout("g-1", "p-1", 1500, "cashout-r1")
        assert result == PayoutResult(success=True, reference="cashout-r1", detail="noop")


class TestWebhookTrigger:
    async def test_posts_amount_with_idempotency_key(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"reference": "0xdeadbeef"})

        trigger = WebhookPayoutTrigger(
            "https://payouts.test/hook", 2.0, transport=httpx.MockTransport(handler)
        )
        result = await trigger.payout("g-1", "p-1", 1500, "cashout-r1")

        assert result.success is True
        assert result.reference == "0xdeadbeef"
        assert seen[0].headers["Idempotency-Key"] == "cashout-r1"
        assert json.loads(seen[0].content) == {
            "game_id": "g-1",
            "player_id": "p-1",
            "amount_cents": 1500,
            "reference": "cashout-r1",
        }

    async def test_non_2xx_is_failure(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(503, text="busy"))
        trigger = WebhookPayoutTrigger("https://payouts.test/hook", 2.0, transport=transport)

        result = await trigger.payout("g-1", "p-1", 1500, "cashout-r1")

        assert result.success is False
        assert result.reference == "cashout-r1"
        assert "503" in result.detail

    async def test_plain_2xx_keeps_own_reference(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(204))
        trigger = WebhookPayoutTrigger("https://payouts.test/hook", 2.0, transport=transport)
        result = await trigger.payout("g-1", "p-1", 1500, "cashout-r1")
        assert result == PayoutResult(success=True, reference="cashout-r1")


class TestBuildTrigger:
    def test_noop_without_url(self) -> None:
        with patch("src.pl_payout.application.dispatcher.settings") as s:
            s.PAYOUT_WEBHOOK_URL = None
            assert isinstance(build_payout_trigger(), NoopPayoutTrigger)

    def test_webhook_with_url(self) -> None:
        with patch("src.pl_payout.application.dispatcher.settings") as s:
            s.PAYOUT_WEBHOOK_URL = "https://payouts.test/hook"
            s.PAYOUT_TIMEOUT_SECONDS = 3.0
            assert isinstance(build_payout_trigger(), WebhookPayoutTrigger)


class TestDispatcher:
    async def test_success_raises_no_alert(self) -> None:
        trigger = AsyncMock()
        trigger.payout.return_value = PayoutResult(success=True, reference="cashout-r1")
        alert = AsyncMock()
        dispatcher = PayoutDispatcher(trigger=trigger, timeout_seconds=1.0, alert_sink=alert)

        result = await dispatcher.dispatch("g-1", "p-1", 1500, "r1")

        assert result.success is True
        trigger.payout.assert_awaited_once_with("g-1", "p-1", 1500, "cashout-r1")
        alert.assert_not_awaited()

    async def test_exception_becomes_failed_result(self) -> None:
        trigger = AsyncMock()
        trigger.payout.side_effect = ConnectionError("executor down")
        alert = AsyncMock()
        dispatcher = PayoutDispatcher(trigger=trigger, timeout_seconds=1.0, alert_sink=alert)

        result = await dispatcher.dispatch("g-1", "p-1", 1500, "r1")

        assert result.success is False
        assert "executor down" in result.detail
        payload = alert.await_args.args[0]
        assert payload["event"] == "payout.failed"
        assert payload["amount_cents"] == 1500
        assert payload["request_id"] == "r1"

    async def test_timeout_becomes_failed_result(self) -> None:
        class SlowTrigger:
            async def payout(self, game_id, player_id, amount_cents, reference):
                await asyncio.sleep(5)
                return PayoutResult(success=True, reference=reference)

        alert = AsyncMock()
        dispatcher = PayoutDispatcher(
            trigger=SlowTrigger(), timeout_seconds=0.01, alert_sink=alert
        )

        result = await dispatcher.dispatch("g-1", "p-1", 1500, "r1")

        assert result.success is False
        assert "timed out" in result.detail
        alert.assert_awaited_once()

    async def test_unsuccessful_result_alerts(self) -> None:
        trigger = AsyncMock()
        trigger.payout.return_value = PayoutResult(
            success=False, reference="cashout-r1", detail="insufficient escrow"
        )
        alert = AsyncMock()
        dispatcher = PayoutDispatcher(trigger=trigger, timeout_seconds=1.0, alert_sink=alert)

        result = await dispatcher.dispatch("g-1", "p-1", 1500, "r1")

        assert result.success is False
        assert alert.await_args.args[0]["detail"] == "insufficient escrow"
