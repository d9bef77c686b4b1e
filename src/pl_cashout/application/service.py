"""CashOutApplicationService — submission, voting and finalization of cash-outs.

Submission is serialized per player and voting per request: a process-local
KeyedLocks entry is held while the row is re-read with SELECT ... FOR UPDATE,
so concurrent votes on the same request finalize it exactly once.

Mutating operations own their transaction. Events are published, and the
payout is dispatched, only after the commit that produced them.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.pl_cashout.domain.aggregator import (
    eligible_voters,
    evaluate_status,
    tally,
    voter_role,
)
from src.pl_cashout.domain.events import (
    CashOutEvent,
    EventPublisherProtocol,
    request_event,
    vote_event,
)
from src.pl_cashout.domain.models import (
    Approval,
    ApprovalView,
    CashOutRequest,
    RequestSummary,
    VoterSet,
)
from src.pl_cashout.domain.repository import CashOutRepositoryProtocol
from src.pl_cashout.infrastructure.event_publisher import RedisEventPublisher
from src.pl_cashout.infrastructure.persistence import CashOutRepository
from src.pl_common.cents import validate_non_negative
from src.pl_common.enums import (
    CashOutEventType,
    CashOutStatus,
    GameStatus,
    PlayerStatus,
)
from src.pl_common.errors import (
    AlreadyVotedError,
    CashOutRequestNotFoundError,
    GameNotActiveError,
    GameNotFoundError,
    NotAuthorizedError,
    PlayerNotActiveError,
    PlayerNotFoundError,
    RequestAlreadyOpenError,
    RequestNotOpenError,
    ValidationError,
)
from src.pl_common.id_generator import generate_id
from src.pl_common.locks import KeyedLocks
from src.pl_game.domain.models import Game
from src.pl_game.domain.repository import GameRepositoryProtocol
from src.pl_game.infrastructure.persistence import GameRepository
from src.pl_gateway.user.directory import (
    SqlUserDirectory,
    UserDirectoryProtocol,
    same_address,
)
from src.pl_gateway.user.models import DirectoryUser
from src.pl_payout.application.dispatcher import PayoutDispatcher
from src.pl_player.application.service import PlayerLedgerService
from src.pl_player.domain.models import Player

logger = logging.getLogger(__name__)

_UNKNOWN_USER = "Unknown"


def _username(users: dict[str, DirectoryUser], user_id: str | None) -> str:
    if user_id is None or user_id not in users:
        return _UNKNOWN_USER
    return users[user_id].username


class CashOutApplicationService:
    def __init__(
        self,
        repo: CashOutRepositoryProtocol | None = None,
        game_repo: GameRepositoryProtocol | None = None,
        ledger: PlayerLedgerService | None = None,
        directory: UserDirectoryProtocol | None = None,
        dispatcher: PayoutDispatcher | None = None,
        publisher: EventPublisherProtocol | None = None,
    ) -> None:
        self._repo: CashOutRepositoryProtocol = repo or CashOutRepository()
        self._games: GameRepositoryProtocol = game_repo or GameRepository()
        self._directory: UserDirectoryProtocol = directory or SqlUserDirectory()
        self._ledger = ledger or PlayerLedgerService(directory=self._directory)
        self._dispatcher = dispatcher or PayoutDispatcher()
        self._publisher: EventPublisherProtocol = publisher or RedisEventPublisher()
        self._player_locks = KeyedLocks("player")
        self._request_locks = KeyedLocks("cashout-request")

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit_request(
        self, db: AsyncSession, game_id: str, user_id: str, chip_count_cents: int
    ) -> CashOutRequest:
        """Open a PENDING request declaring the player's final chip count.

        Open DISPUTED requests of the player are superseded by the new one;
        their approvals are not carried forward.
        """
        try:
            validate_non_negative(chip_count_cents)
        except ValueError as exc:
            raise ValidationError("chip_count_cents", str(exc)) from exc

        game = await self._get_game(db, game_id)
        if game.status != GameStatus.ACTIVE:
            raise GameNotActiveError(game_id)
        player = await self._ledger.get_player(db, game_id, user_id)

        events: list[CashOutEvent] = []
        finalized: CashOutRequest | None = None
        async with self._player_locks.hold(player.id):
            try:
                player = await self._lock_player(db, game_id, user_id)
                open_requests = [
                    r for r in await self._repo.list_by_player(db, player.id)
                    if r.status == CashOutStatus.PENDING
                ]
                if open_requests:
                    raise RequestAlreadyOpenError(player.id)
                if player.status != PlayerStatus.ACTIVE:
                    raise PlayerNotActiveError(player.id, player.status)

                request = await self._repo.insert_request(
                    db,
                    CashOutRequest(
                        id=generate_id(),
                        game_id=game_id,
                        player_id=player.id,
                        chip_count_cents=chip_count_cents,
                        status=CashOutStatus.PENDING.value,
                    ),
                )
                if request is None:
                    raise RequestAlreadyOpenError(player.id)
                superseded = await self._repo.mark_superseded(db, player.id, request.id)
                await self._ledger.set_status(db, player.id, PlayerStatus.CASHING_OUT)
                events.append(request_event(CashOutEventType.SUBMITTED, request))

                # Nobody left to ask: unanimity over an empty set holds immediately
                voter_set = await self._voter_set(db, game, player)
                if evaluate_status(voter_set, []) == CashOutStatus.APPROVED:
                    request = await self._finalize(db, request, voter_set)
                    events.append(request_event(CashOutEventType.APPROVED, request))
                    finalized = request
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "cash-out %s submitted by player %s in game %s: %d cents (superseded %s)",
            request.id, player.id, game_id, chip_count_cents, superseded or "none",
        )
        await self._after_commit(db, events, finalized)
        return request

    # ------------------------------------------------------------------
    # Voting
    # ------------------------------------------------------------------

    async def cast_vote(
        self,
        db: AsyncSession,
        request_id: str,
        voter_id: str,
        approved: bool,
        counter_value_cents: int | None = None,
    ) -> Approval:
        if approved:
            counter_value_cents = None
        elif counter_value_cents is not None:
            try:
                validate_non_negative(counter_value_cents)
            except ValueError as exc:
                raise ValidationError("counter_value_cents", str(exc)) from exc

        # Existence check outside the lock so unknown ids never allocate one
        await self.get_request(db, request_id)

        events: list[CashOutEvent] = []
        finalized: CashOutRequest | None = None
        async with self._request_locks.hold(request_id):
            try:
                request = await self._repo.get_request_for_update(db, request_id)
                if request is None:
                    raise CashOutRequestNotFoundError(request_id)
                self._ensure_votable(request)

                existing = await self._repo.list_approvals(db, request_id)
                if any(a.approver_id == voter_id for a in existing):
                    raise AlreadyVotedError(request_id)

                game = await self._get_game(db, request.game_id)
                submitter = await self._ledger.get_player_by_id(db, request.player_id)
                voter_set = await self._voter_set(db, game, submitter)
                voter = await self._directory.get_user(db, voter_id)
                role = voter_role(voter_set, voter_id, voter.wallet_address if voter else None)
                if role is None:
                    raise NotAuthorizedError(f"vote on cash-out request {request_id}")

                approval = await self._repo.insert_approval(
                    db,
                    Approval(
                        id=generate_id(),
                        request_id=request_id,
                        approver_id=voter_id,
                        voter_role=role.value,
                        approved=approved,
                        counter_value_cents=counter_value_cents,
                    ),
                )
                if approval is None:
                    raise AlreadyVotedError(request_id)
                events.append(vote_event(request, approval))

                if request.status == CashOutStatus.PENDING:
                    outcome = evaluate_status(voter_set, [*existing, approval])
                    if outcome == CashOutStatus.DISPUTED:
                        request = await self._dispute(db, request, voter_set)
                        events.append(request_event(CashOutEventType.DISPUTED, request))
                    elif outcome == CashOutStatus.APPROVED:
                        request = await self._finalize(db, request, voter_set)
                        events.append(request_event(CashOutEventType.APPROVED, request))
                        finalized = request
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "vote on %s by %s as %s: %s",
            request_id, voter_id, role.value, "approve" if approved else "dispute",
        )
        await self._after_commit(db, events, finalized)
        return approval

    def _ensure_votable(self, request: CashOutRequest) -> None:
        if request.status == CashOutStatus.APPROVED:
            raise RequestNotOpenError(request.id, request.status)
        if request.status == CashOutStatus.DISPUTED and request.superseded_by:
            raise RequestNotOpenError(request.id, request.status)

    # ------------------------------------------------------------------
    # Transitions (inside the caller's transaction)
    # ------------------------------------------------------------------

    async def _dispute(
        self, db: AsyncSession, request: CashOutRequest, voter_set: VoterSet
    ) -> CashOutRequest:
        updated = await self._repo.update_status(
            db,
            request.id,
            CashOutStatus.PENDING.value,
            CashOutStatus.DISPUTED.value,
            eligible_voters=voter_set.size,
        )
        if updated is None:
            raise RequestNotOpenError(request.id, request.status)
        # Player goes back to the table and may resubmit
        await self._ledger.set_status(db, request.player_id, PlayerStatus.ACTIVE)
        logger.info("cash-out %s disputed", request.id)
        return updated

    async def _finalize(
        self, db: AsyncSession, request: CashOutRequest, voter_set: VoterSet
    ) -> CashOutRequest:
        updated = await self._repo.update_status(
            db,
            request.id,
            CashOutStatus.PENDING.value,
            CashOutStatus.APPROVED.value,
            eligible_voters=voter_set.size,
        )
        if updated is None:
            raise RequestNotOpenError(request.id, request.status)
        await self._ledger.set_status(db, request.player_id, PlayerStatus.CASHED_OUT)
        await self._ledger.set_final_chip_count(db, request.player_id, updated)
        logger.info(
            "cash-out %s approved: player %s out with %d cents",
            request.id, request.player_id, updated.chip_count_cents,
        )
        return updated

    async def _after_commit(
        self,
        db: AsyncSession,
        events: list[CashOutEvent],
        finalized: CashOutRequest | None,
    ) -> None:
        await self._publisher.publish(events)
        if finalized is None:
            return
        await self._dispatcher.dispatch(
            finalized.game_id,
            finalized.player_id,
            finalized.chip_count_cents,
            finalized.id,
        )
        try:
            await self._reevaluate_game(db, finalized.game_id)
        except Exception:
            logger.exception(
                "re-evaluation of game %s after %s failed", finalized.game_id, finalized.id
            )

    async def _reevaluate_game(self, db: AsyncSession, game_id: str) -> None:
        """A finalization removes a voter from every other open request of the game.

        Requests that now have full approval from the smaller set finalize
        here, one lock at a time, until nothing changes.
        """
        changed = True
        while changed:
            changed = False
            pending = await self._repo.list_by_game(db, game_id, CashOutStatus.PENDING.value)
            for candidate in pending:
                try:
                    if await self._reevaluate(db, candidate.id):
                        changed = True
                except Exception:
                    logger.exception("re-evaluation of cash-out %s failed", candidate.id)

    async def _reevaluate(self, db: AsyncSession, request_id: str) -> bool:
        async with self._request_locks.hold(request_id):
            try:
                request = await self._repo.get_request_for_update(db, request_id)
                if request is None or request.status != CashOutStatus.PENDING:
                    await db.rollback()
                    return False
                game = await self._get_game(db, request.game_id)
                submitter = await self._ledger.get_player_by_id(db, request.player_id)
                voter_set = await self._voter_set(db, game, submitter)
                approvals = await self._repo.list_approvals(db, request_id)
                if evaluate_status(voter_set, approvals) != CashOutStatus.APPROVED:
                    await db.rollback()
                    return False
                request = await self._finalize(db, request, voter_set)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        await self._publisher.publish([request_event(CashOutEventType.APPROVED, request)])
        await self._dispatcher.dispatch(
            request.game_id, request.player_id, request.chip_count_cents, request.id
        )
        return True

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_request(self, db: AsyncSession, request_id: str) -> CashOutRequest:
        request = await self._repo.get_request(db, request_id)
        if request is None:
            raise CashOutRequestNotFoundError(request_id)
        return request

    async def list_by_game(
        self, db: AsyncSession, game_id: str, status: str | None = None
    ) -> list[CashOutRequest]:
        return await self._repo.list_by_game(db, game_id, status)

    async def list_by_player(self, db: AsyncSession, player_id: str) -> list[CashOutRequest]:
        return await self._repo.list_by_player(db, player_id)

    async def list_my_requests(
        self, db: AsyncSession, game_id: str, user_id: str
    ) -> list[CashOutRequest]:
        player = await self._ledger.get_player(db, game_id, user_id)
        return await self._repo.list_by_player(db, player.id)

    async def list_game_requests(
        self,
        db: AsyncSession,
        game_id: str,
        viewer_id: str,
        status: str | None = None,
    ) -> list[RequestSummary]:
        game = await self._get_game(db, game_id)
        players = await self._ledger.list_players(db, game_id)
        users = await self._users_for(db, players, [viewer_id])
        self._authorize_viewer(game, players, users, viewer_id)
        requests = await self._repo.list_by_game(db, game_id, status)
        return await self._summaries(db, game, players, users, requests, viewer_id)

    async def get_request_summary(
        self, db: AsyncSession, request_id: str, viewer_id: str
    ) -> RequestSummary:
        request = await self.get_request(db, request_id)
        game = await self._get_game(db, request.game_id)
        players = await self._ledger.list_players(db, game.id)
        users = await self._users_for(db, players, [viewer_id])
        self._authorize_viewer(game, players, users, viewer_id)
        summaries = await self._summaries(db, game, players, users, [request], viewer_id)
        return summaries[0]

    async def list_approvals(
        self, db: AsyncSession, request_id: str, viewer_id: str
    ) -> list[ApprovalView]:
        request = await self.get_request(db, request_id)
        game = await self._get_game(db, request.game_id)
        players = await self._ledger.list_players(db, game.id)
        approvals = await self._repo.list_approvals(db, request_id)
        users = await self._users_for(
            db, players, [viewer_id, *(a.approver_id for a in approvals)]
        )
        self._authorize_viewer(game, players, users, viewer_id)
        return [
            ApprovalView(approval=a, username=_username(users, a.approver_id)) for a in approvals
        ]

    async def _summaries(
        self,
        db: AsyncSession,
        game: Game,
        players: list[Player],
        users: dict[str, DirectoryUser],
        requests: list[CashOutRequest],
        viewer_id: str,
    ) -> list[RequestSummary]:
        approvals = await self._repo.list_approvals_for_requests(db, [r.id for r in requests])
        wallets = {uid: u.wallet_address for uid, u in users.items()}
        by_id = {p.id: p for p in players}

        summaries = []
        for r in requests:
            submitter = by_id.get(r.player_id)
            if submitter is None:
                voter_set = VoterSet(player_user_ids=frozenset())
            else:
                voter_set = eligible_voters(game, players, submitter, wallets)
            submitter_id = submitter.user_id if submitter else None
            summaries.append(
                RequestSummary(
                    request=r,
                    submitter_user_id=submitter_id,
                    submitter_username=_username(users, submitter_id),
                    tally=tally(
                        voter_set,
                        approvals.get(r.id, []),
                        viewer_id,
                        frozen_eligible=(
                            r.eligible_voters if r.status != CashOutStatus.PENDING else None
                        ),
                    ),
                )
            )
        return summaries

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_game(self, db: AsyncSession, game_id: str) -> Game:
        game = await self._games.get_game_by_id(db, game_id)
        if game is None:
            raise GameNotFoundError(game_id)
        return game

    async def _lock_player(self, db: AsyncSession, game_id: str, user_id: str) -> Player:
        player = await self._ledger.repo.get_player_for_update(db, game_id, user_id)
        if player is None:
            raise PlayerNotFoundError(f"user {user_id} in game {game_id}")
        return player

    async def _users_for(
        self, db: AsyncSession, players: list[Player], extra_ids: list[str]
    ) -> dict[str, DirectoryUser]:
        return await self._directory.get_users(
            db, [*(p.user_id for p in players), *extra_ids]
        )

    async def _voter_set(self, db: AsyncSession, game: Game, submitter: Player) -> VoterSet:
        """Eligible voters as of now; membership and statuses are re-read every time."""
        players = await self._ledger.list_players(db, game.id)
        users = await self._directory.get_users(db, [p.user_id for p in players])
        wallets = {uid: u.wallet_address for uid, u in users.items()}
        return eligible_voters(game, players, submitter, wallets)

    def _authorize_viewer(
        self,
        game: Game,
        players: list[Player],
        users: dict[str, DirectoryUser],
        viewer_id: str,
    ) -> None:
        if any(p.user_id == viewer_id for p in players):
            return
        viewer = users.get(viewer_id)
        if game.has_banker and viewer and same_address(viewer.wallet_address, game.banker_address):
            return
        raise NotAuthorizedError(f"view cash-out requests of game {game.id}")


_service: CashOutApplicationService | None = None


def get_cashout_service() -> CashOutApplicationService:
    global _service  # noqa: PLW0603
    if _service is None:
        _service = CashOutApplicationService()
    return _service
