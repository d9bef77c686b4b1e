"""PlayerLedgerService — participant records and their status state machine.

The ledger never commits: writes run inside the caller's transaction (join in
the game registry, submission / finalization in the cash-out service).
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.pl_cashout.domain.models import CashOutRequest
from src.pl_common.enums import CashOutStatus, PlayerStatus
from src.pl_common.errors import InvalidTransitionError, PlayerNotFoundError
from src.pl_gateway.user.directory import SqlUserDirectory, UserDirectoryProtocol
from src.pl_player.domain.models import Player, PlayerView
from src.pl_player.domain.repository import PlayerRepositoryProtocol
from src.pl_player.domain.transitions import can_transition
from src.pl_player.infrastructure.persistence import PlayerRepository

logger = logging.getLogger(__name__)


class PlayerLedgerService:
    def __init__(
        self,
        repo: PlayerRepositoryProtocol | None = None,
        directory: UserDirectoryProtocol | None = None,
    ) -> None:
        self._repo: PlayerRepositoryProtocol = repo or PlayerRepository()
        self._directory: UserDirectoryProtocol = directory or SqlUserDirectory()

    @property
    def repo(self) -> PlayerRepositoryProtocol:
        return self._repo

    async def get_player(self, db: AsyncSession, game_id: str, user_id: str) -> Player:
        player = await self._repo.get_player(db, game_id, user_id)
        if player is None:
            raise PlayerNotFoundError(f"user {user_id} in game {game_id}")
        return player

    async def get_player_by_id(self, db: AsyncSession, player_id: str) -> Player:
        player = await self._repo.get_player_by_id(db, player_id)
        if player is None:
            raise PlayerNotFoundError(player_id)
        return player

    async def list_players(self, db: AsyncSession, game_id: str) -> list[Player]:
        """Players in join order."""
        return await self._repo.list_players(db, game_id)

    async def list_players_with_users(
        self, db: AsyncSession, game_id: str
    ) -> list[PlayerView]:
        players = await self._repo.list_players(db, game_id)
        users = await self._directory.get_users(db, [p.user_id for p in players])
        return [
            PlayerView(
                player=p,
                username=users[p.user_id].username if p.user_id in users else "Unknown",
            )
            for p in players
        ]

    async def set_status(
        self, db: AsyncSession, player_id: str, new_status: PlayerStatus
    ) -> Player:
        player = await self.get_player_by_id(db, player_id)
        if not can_transition(player.status, new_status):
            raise InvalidTransitionError(player_id, player.status, new_status.value)

        updated = await self._repo.update_status(
            db, player_id, expected=player.status, status=new_status.value
        )
        if updated is None:
            current = await self.get_player_by_id(db, player_id)
            raise InvalidTransitionError(player_id, current.status, new_status.value)
        logger.info("player %s: %s → %s", player_id, player.status, new_status.value)
        return updated

    async def set_final_chip_count(
        self, db: AsyncSession, player_id: str, request: CashOutRequest
    ) -> Player:
        """Record the approved declaration as the player's final chip count.

        Only valid during finalization: the request must be APPROVED, belong to
        this player, and the player must already be CASHED_OUT.
        """
        if request.player_id != player_id or request.status != CashOutStatus.APPROVED:
            raise InvalidTransitionError(player_id, request.status, "FINAL_CHIP_COUNT")
        updated = await self._repo.set_final_chip_count(
            db, player_id, request.chip_count_cents
        )
        if updated is None:
            current = await self.get_player_by_id(db, player_id)
            raise InvalidTransitionError(player_id, current.status, "FINAL_CHIP_COUNT")
        return updated
