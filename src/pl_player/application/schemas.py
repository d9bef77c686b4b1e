"""Pydantic schemas for pl_player API responses."""

from pydantic import BaseModel

from src.pl_common.cents import cents_to_display
from src.pl_common.datetime_utils import iso_or_none
from src.pl_player.domain.models import Player, PlayerView


class PlayerResponse(BaseModel):
    id: str
    game_id: str
    user_id: str
    wallet_address: str
    buy_in_cents: int
    buy_in_display: str
    status: str
    final_chip_count_cents: int | None
    final_chip_count_display: str | None
    joined_at: str | None

    @classmethod
    def from_domain(cls, p: Player) -> "PlayerResponse":
        final = p.final_chip_count_cents
        return cls(
            id=p.id,
            game_id=p.game_id,
            user_id=p.user_id,
            wallet_address=p.wallet_address,
            buy_in_cents=p.buy_in_cents,
            buy_in_display=cents_to_display(p.buy_in_cents),
            status=p.status,
            final_chip_count_cents=final,
            final_chip_count_display=cents_to_display(final) if final is not None else None,
            joined_at=iso_or_none(p.joined_at),
        )


class PlayerWithUserResponse(PlayerResponse):
    username: str

    @classmethod
    def from_view(cls, view: PlayerView) -> "PlayerWithUserResponse":
        base = PlayerResponse.from_domain(view.player)
        return cls(**base.model_dump(), username=view.username)


class PlayerListResponse(BaseModel):
    items: list[PlayerWithUserResponse]
