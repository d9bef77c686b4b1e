"""Approval aggregation — the cash-out decision rules.

Pure functions over (game, players, approvals); no I/O, no clock. The
application service recomputes the voter set on every evaluation, so the
outcome depends only on the set of votes and the membership at that moment,
never on the order in which votes arrived.

Rules:
  1. any approved=False vote          → DISPUTED (sticky)
  2. every eligible identity approved → APPROVED
  3. otherwise                        → PENDING
"""

from collections.abc import Iterable, Mapping

from src.pl_cashout.domain.models import Approval, VoterSet, VoteTally
from src.pl_common.enums import CashOutStatus, PlayerStatus, VoterRole
from src.pl_game.domain.models import Game
from src.pl_gateway.user.directory import same_address
from src.pl_player.domain.models import Player


def eligible_voters(
    game: Game,
    players: Iterable[Player],
    submitter: Player,
    directory_wallets: Mapping[str, str | None] | None = None,
) -> VoterSet:
    """Players of the game still holding chips (submitter excluded) plus the banker.

    The banker is the user whose directory wallet equals the game's banker
    address, the same identity that may end the game. The banker slot is open
    unless that user is the submitter or one of the counted players. Payout
    wallets given at join time do not identify the banker.
    """
    wallets = directory_wallets or {}
    eligible = [
        p for p in players
        if p.game_id == game.id
        and p.id != submitter.id
        and p.status != PlayerStatus.CASHED_OUT
    ]

    banker = game.banker_address if game.has_banker else None
    if banker:
        counted = [submitter, *eligible]
        if any(same_address(banker, wallets.get(p.user_id)) for p in counted):
            banker = None

    return VoterSet(
        player_user_ids=frozenset(p.user_id for p in eligible),
        banker_address=banker,
    )


def voter_role(
    voter_set: VoterSet, user_id: str, wallet_address: str | None
) -> VoterRole | None:
    """Capacity in which *user_id* may vote, or None when not eligible."""
    if user_id in voter_set.player_user_ids:
        return VoterRole.PLAYER
    if voter_set.banker_address and same_address(voter_set.banker_address, wallet_address):
        return VoterRole.BANKER
    return None


def _approving_players(approvals: Iterable[Approval]) -> set[str]:
    return {
        a.approver_id for a in approvals
        if a.approved and a.voter_role == VoterRole.PLAYER
    }


def _banker_approved(approvals: Iterable[Approval]) -> bool:
    return any(a.approved and a.voter_role == VoterRole.BANKER for a in approvals)


def evaluate_status(voter_set: VoterSet, approvals: Iterable[Approval]) -> CashOutStatus:
    votes = list(approvals)
    if any(not a.approved for a in votes):
        return CashOutStatus.DISPUTED

    if not voter_set.player_user_ids <= _approving_players(votes):
        return CashOutStatus.PENDING
    if voter_set.banker_address and not _banker_approved(votes):
        return CashOutStatus.PENDING
    return CashOutStatus.APPROVED


def tally(
    voter_set: VoterSet,
    approvals: Iterable[Approval],
    viewer_id: str | None = None,
    frozen_eligible: int | None = None,
) -> VoteTally:
    """Vote counts for display.

    *frozen_eligible* is the voter-set size recorded when the request left
    PENDING; a decided request waits on nobody.
    """
    votes = list(approvals)
    voted = {a.approver_id for a in votes}
    if frozen_eligible is not None:
        return VoteTally(
            total_votes=len(votes),
            approvals=sum(1 for a in votes if a.approved),
            disputes=sum(1 for a in votes if not a.approved),
            eligible_voters=frozen_eligible,
            viewer_has_voted=viewer_id is not None and viewer_id in voted,
        )
    return VoteTally(
        total_votes=len(votes),
        approvals=sum(1 for a in votes if a.approved),
        disputes=sum(1 for a in votes if not a.approved),
        eligible_voters=voter_set.size,
        missing_player_ids=sorted(voter_set.player_user_ids - voted),
        banker_pending=bool(voter_set.banker_address) and not any(
            a.voter_role == VoterRole.BANKER for a in votes
        ),
        viewer_has_voted=viewer_id is not None and viewer_id in voted,
    )
