"""Read-only view of a user directory entry."""

from dataclasses import dataclass


@dataclass(frozen=True)
class DirectoryUser:
    id: str
    username: str
    wallet_address: str | None
    is_active: bool = True
