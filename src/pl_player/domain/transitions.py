"""Player status state machine.

    ACTIVE ──submit──▶ CASHING_OUT ──approved──▶ CASHED_OUT
       ▲                    │
       └─────disputed───────┘

CASHED_OUT is terminal. Same-state "transitions" are rejected too.
"""

from src.pl_common.enums import PlayerStatus

ALLOWED_TRANSITIONS: dict[PlayerStatus, frozenset[PlayerStatus]] = {
    PlayerStatus.ACTIVE: frozenset({PlayerStatus.CASHING_OUT}),
    PlayerStatus.CASHING_OUT: frozenset({PlayerStatus.ACTIVE, PlayerStatus.CASHED_OUT}),
    PlayerStatus.CASHED_OUT: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    try:
        src, dst = PlayerStatus(current), PlayerStatus(target)
    except ValueError:
        return False
    return dst in ALLOWED_TRANSITIONS[src]
