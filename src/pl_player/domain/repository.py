"""Repository Protocol — dependency inversion for testability."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pl_player.domain.models import Player


class PlayerRepositoryProtocol(Protocol):
    async def insert_player(self, db: AsyncSession, player: Player) -> Player | None:
        """Insert; returns None when (game_id, user_id) already exists."""
        ...

    async def get_player_by_id(self, db: AsyncSession, player_id: str) -> Player | None: ...

    async def get_player(
        self, db: AsyncSession, game_id: str, user_id: str
    ) -> Player | None: ...

    async def get_player_for_update(
        self, db: AsyncSession, game_id: str, user_id: str
    ) -> Player | None: ...

    async def list_players(self, db: AsyncSession, game_id: str) -> list[Player]: ...

    async def count_players(self, db: AsyncSession, game_id: str) -> int: ...

    async def update_status(
        self, db: AsyncSession, player_id: str, expected: str, status: str
    ) -> Player | None:
        """Compare-and-set; returns None when the current status is not *expected*."""
        ...

    async def set_final_chip_count(
        self, db: AsyncSession, player_id: str, chip_count_cents: int
    ) -> Player | None: ...
