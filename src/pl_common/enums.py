"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class GameStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ENDED = "ENDED"


class PlayerStatus(str, Enum):
    ACTIVE = "ACTIVE"
    CASHING_OUT = "CASHING_OUT"
    CASHED_OUT = "CASHED_OUT"


class CashOutStatus(str, Enum):
    """PENDING → DISPUTED | APPROVED. APPROVED is terminal, DISPUTED is sticky."""
    PENDING = "PENDING"
    DISPUTED = "DISPUTED"
    APPROVED = "APPROVED"


class VoterRole(str, Enum):
    """Capacity in which an approval was cast"""
    PLAYER = "PLAYER"
    BANKER = "BANKER"


class CashOutEventType(str, Enum):
    SUBMITTED = "cashout.submitted"
    VOTE_CAST = "cashout.vote_cast"
    DISPUTED = "cashout.disputed"
    APPROVED = "cashout.approved"
