"""Pydantic schemas for pl_game API requests and responses."""

from pydantic import BaseModel, Field, field_validator

from src.pl_common.cents import MAX_CENTS, cents_to_display
from src.pl_common.datetime_utils import iso_or_none
from src.pl_game.domain.models import Game
from src.pl_player.application.schemas import PlayerResponse

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateGameRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    buy_in_cents: int = Field(..., gt=0, le=MAX_CENTS, description="Buy-in per player in cents")
    banker_address: str | None = Field(None, max_length=128)
    max_players: int | None = Field(None, ge=2, le=100)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v.strip()


class JoinGameRequest(BaseModel):
    code: str = Field(..., min_length=4, max_length=12, pattern=r"^[A-Za-z0-9]+$")
    wallet_address: str = Field(..., min_length=1, max_length=128)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class GameResponse(BaseModel):
    id: str
    name: str
    code: str
    buy_in_cents: int
    buy_in_display: str
    banker_address: str | None
    max_players: int | None
    status: str
    created_by: str
    created_at: str | None

    @classmethod
    def from_domain(cls, g: Game) -> "GameResponse":
        return cls(
            id=g.id,
            name=g.name,
            code=g.code,
            buy_in_cents=g.buy_in_cents,
            buy_in_display=cents_to_display(g.buy_in_cents),
            banker_address=g.banker_address,
            max_players=g.max_players,
            status=g.status,
            created_by=g.created_by,
            created_at=iso_or_none(g.created_at),
        )


class GameListResponse(BaseModel):
    items: list[GameResponse]


class JoinGameResponse(BaseModel):
    game: GameResponse
    player: PlayerResponse
