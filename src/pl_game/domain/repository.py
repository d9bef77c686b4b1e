"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pl_game.domain.models import Game


class GameRepositoryProtocol(Protocol):
    async def insert_game(self, db: AsyncSession, game: Game) -> Game | None:
        """Insert; returns None when the join code is already taken."""
        ...

    async def get_game_by_id(self, db: AsyncSession, game_id: str) -> Game | None: ...

    async def get_game_for_update(self, db: AsyncSession, game_id: str) -> Game | None: ...

    async def get_game_by_code(self, db: AsyncSession, code: str) -> Game | None: ...

    async def list_games_for_user(self, db: AsyncSession, user_id: str) -> list[Game]: ...

    async def update_status(
        self, db: AsyncSession, game_id: str, status: str
    ) -> Game | None: ...
