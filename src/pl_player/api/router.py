"""pl_player REST endpoints.

GET /games/{game_id}/players — players in join order, with directory usernames
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pl_common.database import get_db_session
from src.pl_common.errors import GameNotFoundError
from src.pl_common.response import ApiResponse, success_response
from src.pl_game.infrastructure.persistence import GameRepository
from src.pl_gateway.auth.dependencies import get_current_user
from src.pl_gateway.user.db_models import UserModel
from src.pl_player.application.schemas import PlayerListResponse, PlayerWithUserResponse
from src.pl_player.application.service import PlayerLedgerService

router = APIRouter(tags=["players"])

_ledger = PlayerLedgerService()
_games = GameRepository()


@router.get("/games/{game_id}/players", response_model=ApiResponse)
async def list_players(
    game_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    if await _games.get_game_by_id(db, game_id) is None:
        raise GameNotFoundError(game_id)
    views = await _ledger.list_players_with_users(db, game_id)
    data = PlayerListResponse(items=[PlayerWithUserResponse.from_view(v) for v in views])
    return success_response(data.model_dump(), request)
