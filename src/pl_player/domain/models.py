"""Domain models for pl_player — pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Player:
    id: str
    game_id: str
    user_id: str
    wallet_address: str             # payout destination
    buy_in_cents: int
    status: str                     # PlayerStatus value
    final_chip_count_cents: int | None = None   # set only on CASHED_OUT
    joined_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class PlayerView:
    """Player annotated with the directory username (read side only)."""

    player: Player
    username: str
