"""pl_game REST endpoints.

POST /games                       — create (creator is not auto-joined)
GET  /games                       — games the caller created or joined
GET  /games/by-code/{code}        — case-insensitive join-code lookup
POST /games/join                  — join by code with a payout wallet
GET  /games/{game_id}             — detail
POST /games/{game_id}/end         — banker (or creator, without banker) ends the game
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.pl_common.database import get_db_session
from src.pl_common.response import ApiResponse, success_response
from src.pl_game.application.schemas import (
    CreateGameRequest,
    GameListResponse,
    GameResponse,
    JoinGameRequest,
    JoinGameResponse,
)
from src.pl_game.application.service import GameApplicationService
from src.pl_gateway.auth.dependencies import get_current_user
from src.pl_gateway.user.db_models import UserModel
from src.pl_player.application.schemas import PlayerResponse

router = APIRouter(prefix="/games", tags=["games"])

_service = GameApplicationService()


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ApiResponse)
async def create_game(
    body: CreateGameRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    game = await _service.create_game(
        db,
        creator_id=str(current_user.id),
        name=body.name,
        buy_in_cents=body.buy_in_cents,
        banker_address=body.banker_address,
        max_players=body.max_players,
    )
    return success_response(
        GameResponse.from_domain(game).model_dump(), request, message="Game created"
    )


@router.get("", response_model=ApiResponse)
async def list_my_games(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    games = await _service.list_games_for_user(db, str(current_user.id))
    data = GameListResponse(items=[GameResponse.from_domain(g) for g in games])
    return success_response(data.model_dump(), request)


@router.get("/by-code/{code}", response_model=ApiResponse)
async def get_game_by_code(
    code: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    game = await _service.get_game_by_code(db, code)
    return success_response(GameResponse.from_domain(game).model_dump(), request)


@router.post("/join", status_code=status.HTTP_201_CREATED, response_model=ApiResponse)
async def join_game(
    body: JoinGameRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    game, player = await _service.join_game(
        db, body.code, str(current_user.id), body.wallet_address
    )
    data = JoinGameResponse(
        game=GameResponse.from_domain(game),
        player=PlayerResponse.from_domain(player),
    )
    return success_response(data.model_dump(), request, message="Joined game")


@router.get("/{game_id}", response_model=ApiResponse)
async def get_game(
    game_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    game = await _service.get_game(db, game_id)
    return success_response(GameResponse.from_domain(game).model_dump(), request)


@router.post("/{game_id}/end", response_model=ApiResponse)
async def end_game(
    game_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    game = await _service.end_game(db, game_id, str(current_user.id))
    return success_response(
        GameResponse.from_domain(game).model_dump(), request, message="Game ended"
    )
