"""Domain models for pl_game — pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Game:
    id: str
    name: str
    code: str                       # upper-case, unique across all games
    buy_in_cents: int
    banker_address: str | None
    max_players: int | None
    status: str                     # GameStatus value
    created_by: str                 # user id of the creator
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def has_banker(self) -> bool:
        return bool(self.banker_address)
