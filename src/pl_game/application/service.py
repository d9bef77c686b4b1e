"""GameApplicationService — game registry: create, look up, join, end.

Mutating operations own their transaction: commit on success, rollback and
re-raise on any error.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pl_common.cents import validate_positive
from src.pl_common.enums import GameStatus, PlayerStatus
from src.pl_common.errors import (
    AlreadyJoinedError,
    GameFullError,
    GameNotActiveError,
    GameNotFoundError,
    InternalError,
    NotAuthorizedError,
    ValidationError,
)
from src.pl_common.id_generator import generate_id
from src.pl_game.domain.join_code import generate_join_code, normalize_join_code
from src.pl_game.domain.models import Game
from src.pl_game.domain.repository import GameRepositoryProtocol
from src.pl_game.infrastructure.persistence import GameRepository
from src.pl_gateway.user.directory import (
    SqlUserDirectory,
    UserDirectoryProtocol,
    same_address,
)
from src.pl_player.application.service import PlayerLedgerService
from src.pl_player.domain.models import Player

logger = logging.getLogger(__name__)

_MAX_NAME_LEN = 100


def _clean_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class GameApplicationService:
    def __init__(
        self,
        repo: GameRepositoryProtocol | None = None,
        ledger: PlayerLedgerService | None = None,
        directory: UserDirectoryProtocol | None = None,
    ) -> None:
        self._repo: GameRepositoryProtocol = repo or GameRepository()
        self._directory: UserDirectoryProtocol = directory or SqlUserDirectory()
        self._ledger = ledger or PlayerLedgerService(directory=self._directory)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_game(
        self,
        db: AsyncSession,
        creator_id: str,
        name: str,
        buy_in_cents: int,
        banker_address: str | None = None,
        max_players: int | None = None,
    ) -> Game:
        """Create a game with a fresh join code. The creator is NOT joined."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("name", "must not be blank")
        if len(name) > _MAX_NAME_LEN:
            raise ValidationError("name", f"must be at most {_MAX_NAME_LEN} characters")
        try:
            validate_positive(buy_in_cents)
        except ValueError as exc:
            raise ValidationError("buy_in_cents", str(exc)) from exc
        if max_players is not None and max_players < 2:
            raise ValidationError("max_players", "must be at least 2")

        try:
            game = await self._insert_with_unique_code(
                db,
                Game(
                    id=generate_id(),
                    name=name,
                    code="",
                    buy_in_cents=buy_in_cents,
                    banker_address=_clean_optional(banker_address),
                    max_players=max_players,
                    status=GameStatus.ACTIVE.value,
                    created_by=creator_id,
                ),
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("game %s created by %s (code %s)", game.id, creator_id, game.code)
        return game

    async def _insert_with_unique_code(self, db: AsyncSession, draft: Game) -> Game:
        # Collisions are retried silently; ON CONFLICT makes the insert the uniqueness check
        for _ in range(settings.GAME_CODE_MAX_ATTEMPTS):
            draft.code = generate_join_code(settings.GAME_CODE_LENGTH)
            inserted = await self._repo.insert_game(db, draft)
            if inserted is not None:
                return inserted
            logger.debug("join code collision on %s, retrying", draft.code)
        raise InternalError(
            f"Could not allocate a unique join code in {settings.GAME_CODE_MAX_ATTEMPTS} attempts"
        )

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_game(self, db: AsyncSession, game_id: str) -> Game:
        game = await self._repo.get_game_by_id(db, game_id)
        if game is None:
            raise GameNotFoundError(game_id)
        return game

    async def get_game_by_code(self, db: AsyncSession, code: str) -> Game:
        game = await self._repo.get_game_by_code(db, normalize_join_code(code))
        if game is None:
            raise GameNotFoundError(f"code {code}")
        return game

    async def list_games_for_user(self, db: AsyncSession, user_id: str) -> list[Game]:
        return await self._repo.list_games_for_user(db, user_id)

    # ------------------------------------------------------------------
    # Join
    # ------------------------------------------------------------------

    async def join_game(
        self, db: AsyncSession, code: str, user_id: str, wallet_address: str
    ) -> tuple[Game, Player]:
        wallet_address = (wallet_address or "").strip()
        if not wallet_address:
            raise ValidationError("wallet_address", "must not be blank")

        try:
            game = await self.get_game_by_code(db, code)
            # Row lock serializes joins per game so the capacity check holds
            locked = await self._repo.get_game_for_update(db, game.id)
            if locked is None:
                raise GameNotFoundError(game.id)
            game = locked
            if game.status != GameStatus.ACTIVE:
                raise GameNotActiveError(game.id)

            ledger_repo = self._ledger.repo
            if await ledger_repo.get_player(db, game.id, user_id) is not None:
                raise AlreadyJoinedError(game.id)
            if game.max_players is not None:
                if await ledger_repo.count_players(db, game.id) >= game.max_players:
                    raise GameFullError(game.id, game.max_players)

            player = await ledger_repo.insert_player(
                db,
                Player(
                    id=generate_id(),
                    game_id=game.id,
                    user_id=user_id,
                    wallet_address=wallet_address,
                    buy_in_cents=game.buy_in_cents,
                    status=PlayerStatus.ACTIVE.value,
                ),
            )
            if player is None:
                raise AlreadyJoinedError(game.id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("user %s joined game %s as player %s", user_id, game.id, player.id)
        return game, player

    # ------------------------------------------------------------------
    # End
    # ------------------------------------------------------------------

    async def end_game(self, db: AsyncSession, game_id: str, requested_by: str) -> Game:
        """Mark the game ENDED.

        With a banker designated only the user whose wallet equals the banker
        address may end the game; without one only the creator may.
        """
        try:
            game = await self._repo.get_game_for_update(db, game_id)
            if game is None:
                raise GameNotFoundError(game_id)
            await self._authorize_end(db, game, requested_by)
            if game.status != GameStatus.ACTIVE:
                raise GameNotActiveError(game_id)

            ended = await self._repo.update_status(db, game_id, GameStatus.ENDED.value)
            if ended is None:
                raise GameNotFoundError(game_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("game %s ended by %s", game_id, requested_by)
        return ended

    async def _authorize_end(self, db: AsyncSession, game: Game, requested_by: str) -> None:
        if game.has_banker:
            user = await self._directory.get_user(db, requested_by)
            wallet = user.wallet_address if user else None
            if not same_address(wallet, game.banker_address):
                raise NotAuthorizedError(f"end game {game.id} (banker only)")
        elif requested_by != game.created_by:
            raise NotAuthorizedError(f"end game {game.id} (creator only)")
