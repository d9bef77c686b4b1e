"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock (or an in-memory fake) conforming to this Protocol.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pl_cashout.domain.models import Approval, CashOutRequest


class CashOutRepositoryProtocol(Protocol):
    # --- requests ---

    async def insert_request(
        self, db: AsyncSession, request: CashOutRequest
    ) -> CashOutRequest | None:
        """Insert; returns None when the player already has a PENDING request."""
        ...

    async def get_request(
        self, db: AsyncSession, request_id: str
    ) -> CashOutRequest | None: ...

    async def get_request_for_update(
        self, db: AsyncSession, request_id: str
    ) -> CashOutRequest | None: ...

    async def list_by_game(
        self, db: AsyncSession, game_id: str, status: str | None = None
    ) -> list[CashOutRequest]: ...

    async def list_by_player(
        self, db: AsyncSession, player_id: str
    ) -> list[CashOutRequest]: ...

    async def update_status(
        self,
        db: AsyncSession,
        request_id: str,
        expected: str,
        status: str,
        eligible_voters: int | None = None,
    ) -> CashOutRequest | None:
        """Compare-and-set; returns None when the current status is not *expected*.

        *eligible_voters*, when given, records the voter-set size at the decision.
        """
        ...

    async def mark_superseded(
        self, db: AsyncSession, player_id: str, new_request_id: str
    ) -> list[str]:
        """Point every open DISPUTED request of the player at the new request."""
        ...

    # --- approvals ---

    async def insert_approval(
        self, db: AsyncSession, approval: Approval
    ) -> Approval | None:
        """Insert; returns None when (request_id, approver_id) already exists."""
        ...

    async def list_approvals(
        self, db: AsyncSession, request_id: str
    ) -> list[Approval]: ...

    async def list_approvals_for_requests(
        self, db: AsyncSession, request_ids: list[str]
    ) -> dict[str, list[Approval]]: ...
