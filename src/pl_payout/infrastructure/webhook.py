"""Webhook payout trigger — hands the payout to an external settlement executor.

POST {PAYOUT_WEBHOOK_URL}
    Idempotency-Key: cashout-<request_id>
    {"game_id": ..., "player_id": ..., "amount_cents": ..., "reference": ...}

Any 2xx is success; the executor may answer {"reference": "..."} to replace
the reference with its own (e.g. a transaction hash).
"""

import httpx

from src.pl_payout.domain.trigger import PayoutResult


class WebhookPayoutTrigger:
    def __init__(
        self,
        url: str,
        timeout_seconds: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout = httpx.Timeout(timeout_seconds)
        self._transport = transport

    async def payout(
        self, game_id: str, player_id: str, amount_cents: int, reference: str
    ) -> PayoutResult:
        body = {
            "game_id": game_id,
            "player_id": player_id,
            "amount_cents": amount_cents,
            "reference": reference,
        }
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            resp = await client.post(
                self._url, json=body, headers={"Idempotency-Key": reference}
            )

        if not resp.is_success:
            return PayoutResult(
                success=False,
                reference=reference,
                detail=f"HTTP {resp.status_code}: {resp.text[:200]}",
            )

        ext_ref = reference
        if resp.headers.get("content-type", "").startswith("application/json"):
            data = resp.json()
            if isinstance(data, dict) and data.get("reference"):
                ext_ref = str(data["reference"])
        return PayoutResult(success=True, reference=ext_ref)
