"""Unit tests for GameApplicationService using mock repositories."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.pl_common.cents import MAX_CENTS
from src.pl_common.enums import GameStatus, PlayerStatus
from src.pl_common.errors import (
    AlreadyJoinedError,
    GameFullError,
    GameNotActiveError,
    GameNotFoundError,
    InternalError,
    NotAuthorizedError,
    ValidationError,
)
from src.pl_game.application.service import GameApplicationService
from src.pl_game.domain.models import Game
from src.pl_gateway.user.models import DirectoryUser
from src.pl_player.application.service import PlayerLedgerService
from tests.unit.fakes import World


def _make_game(**kwargs) -> Game:
    defaults = {
        "id": "g-1",
        "name": "Friday",
        "code": "ABC123",
        "buy_in_cents": 2000,
        "banker_address": None,
        "max_players": None,
        "status": GameStatus.ACTIVE.value,
        "created_by": "u-creator",
    }
    defaults.update(kwargs)
    return Game(**defaults)


def _service(game_repo=None, player_repo=None, directory=None) -> GameApplicationService:
    directory = directory or AsyncMock()
    ledger = PlayerLedgerService(repo=player_repo or AsyncMock(), directory=directory)
    return GameApplicationService(
        repo=game_repo or AsyncMock(), ledger=ledger, directory=directory
    )


class TestCreateGame:
    async def test_creates_with_generated_code(self) -> None:
        repo = AsyncMock()
        repo.insert_game.side_effect = lambda db, g: g
        svc = _service(game_repo=repo)
        db = MagicMock()
        db.commit = AsyncMock()

        game = await svc.create_game(db, "u-1", "  Friday  ", 2000, banker_address=" 0xB ")

        assert game.name == "Friday"
        assert len(game.code) == 6
        assert game.code.isupper() or game.code.isdigit()
        assert game.status == GameStatus.ACTIVE
        assert game.banker_address == "0xB"
        assert game.created_by == "u-1"
        db.commit.assert_awaited_once()

    async def test_code_collision_is_retried(self) -> None:
        repo = AsyncMock()
        calls = []

        async def insert(db, g):
            calls.append(g.code)
            return None if len(calls) < 3 else g

        repo.insert_game.side_effect = insert
        svc = _service(game_repo=repo)

        game = await svc.create_game(AsyncMock(), "u-1", "Friday", 100)

        assert repo.insert_game.await_count == 3
        assert game.code == calls[-1]

    async def test_code_exhaustion_is_internal_error(self) -> None:
        repo = AsyncMock()
        repo.insert_game.return_value = None
        svc = _service(game_repo=repo)
        db = AsyncMock()

        with pytest.raises(InternalError):
            await svc.create_game(db, "u-1", "Friday", 100)
        db.rollback.assert_awaited_once()

    @pytest.mark.parametrize("buy_in", [0, -100])
    async def test_buy_in_must_be_positive(self, buy_in: int) -> None:
        svc = _service()
        with pytest.raises(ValidationError) as exc:
            await svc.create_game(AsyncMock(), "u-1", "Friday", buy_in)
        assert exc.value.field == "buy_in_cents"

    async def test_buy_in_above_bigint_range(self) -> None:
        svc = _service()
        with pytest.raises(ValidationError) as exc:
            await svc.create_game(AsyncMock(), "u-1", "Friday", MAX_CENTS + 1)
        assert exc.value.field == "buy_in_cents"

    async def test_blank_name(self) -> None:
        svc = _service()
        with pytest.raises(ValidationError) as exc:
            await svc.create_game(AsyncMock(), "u-1", "   ", 100)
        assert exc.value.field == "name"

    async def test_max_players_below_two(self) -> None:
        svc = _service()
        with pytest.raises(ValidationError) as exc:
            await svc.create_game(AsyncMock(), "u-1", "Friday", 100, max_players=1)
        assert exc.value.field == "max_players"

    async def test_creator_is_not_joined(self) -> None:
        world = World()
        game = await world.new_game()
        assert await world.ledger.list_players(world.db, game.id) == []


class TestLookup:
    async def test_get_game_not_found(self) -> None:
        repo = AsyncMock()
        repo.get_game_by_id.return_value = None
        with pytest.raises(GameNotFoundError) as exc:
            await _service(game_repo=repo).get_game(AsyncMock(), "missing")
        assert exc.value.code == 2001

    async def test_code_lookup_is_case_insensitive(self) -> None:
        repo = AsyncMock()
        repo.get_game_by_code.return_value = _make_game()
        await _service(game_repo=repo).get_game_by_code(AsyncMock(), " abc123 ")
        repo.get_game_by_code.assert_awaited_once()
        assert repo.get_game_by_code.await_args.args[1] == "ABC123"


class TestJoinGame:
    async def test_join_copies_buy_in(self) -> None:
        world = World()
        game = await world.new_game(buy_in_cents=2500)
        player = await world.join(game, "u-2", wallet="0xabc")
        assert player.buy_in_cents == 2500
        assert player.status == PlayerStatus.ACTIVE
        assert player.wallet_address == "0xabc"

    async def test_join_twice(self) -> None:
        world = World()
        game = await world.new_game()
        await world.join(game, "u-2")
        with pytest.raises(AlreadyJoinedError) as exc:
            await world.join(game, "u-2")
        assert exc.value.code == 2004

    async def test_join_unknown_code(self) -> None:
        world = World()
        with pytest.raises(GameNotFoundError):
            await world.game_service.join_game(world.db, "ZZZZZZ", "u-2", "0x1")

    async def test_join_ended_game(self) -> None:
        world = World()
        game = await world.new_game(creator="u-1")
        await world.game_service.end_game(world.db, game.id, "u-1")
        with pytest.raises(GameNotActiveError):
            await world.join(game, "u-2")

    async def test_join_full_game(self) -> None:
        world = World()
        game = await world.game_service.create_game(
            world.db, "u-1", "Small", 100, max_players=2
        )
        await world.join(game, "u-1")
        await world.join(game, "u-2")
        with pytest.raises(GameFullError) as exc:
            await world.join(game, "u-3")
        assert exc.value.code == 2003

    async def test_blank_wallet(self) -> None:
        svc = _service()
        with pytest.raises(ValidationError) as exc:
            await svc.join_game(AsyncMock(), "ABC123", "u-2", "  ")
        assert exc.value.field == "wallet_address"


class TestEndGame:
    async def test_non_banker_cannot_end_banker_game(self) -> None:
        repo = AsyncMock()
        repo.get_game_for_update.return_value = _make_game(banker_address="0xBANK")
        directory = AsyncMock()
        directory.get_user.return_value = DirectoryUser("u-creator", "creator", "0xOTHER")
        svc = _service(game_repo=repo, directory=directory)
        db = AsyncMock()

        with pytest.raises(NotAuthorizedError) as exc:
            await svc.end_game(db, "g-1", "u-creator")

        assert exc.value.code == 1010
        repo.update_status.assert_not_awaited()
        db.rollback.assert_awaited_once()

    async def test_banker_ends_game(self) -> None:
        repo = AsyncMock()
        repo.get_game_for_update.return_value = _make_game(banker_address="0xBANK")
        repo.update_status.return_value = _make_game(
            banker_address="0xBANK", status=GameStatus.ENDED.value
        )
        directory = AsyncMock()
        directory.get_user.return_value = DirectoryUser("u-bank", "bank", "0xbank")
        svc = _service(game_repo=repo, directory=directory)
        db = AsyncMock()

        game = await svc.end_game(db, "g-1", "u-bank")

        assert game.status == GameStatus.ENDED
        repo.update_status.assert_awaited_once_with(db, "g-1", GameStatus.ENDED.value)
        db.commit.assert_awaited_once()

    async def test_creator_ends_game_without_banker(self) -> None:
        world = World()
        game = await world.new_game(creator="u-1")
        ended = await world.game_service.end_game(world.db, game.id, "u-1")
        assert ended.status == GameStatus.ENDED

    async def test_other_player_cannot_end_game_without_banker(self) -> None:
        world = World()
        game = await world.new_game(creator="u-1")
        with pytest.raises(NotAuthorizedError):
            await world.game_service.end_game(world.db, game.id, "u-2")
        assert world.games.games[game.id].status == GameStatus.ACTIVE

    async def test_end_twice(self) -> None:
        world = World()
        game = await world.new_game(creator="u-1")
        await world.game_service.end_game(world.db, game.id, "u-1")
        with pytest.raises(GameNotActiveError):
            await world.game_service.end_game(world.db, game.id, "u-1")
