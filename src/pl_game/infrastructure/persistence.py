"""GameRepository — concrete implementation of GameRepositoryProtocol.

All queries use raw text() SQL (no ORM).
Transaction ownership: the CALLER (application service) commits / rolls back.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pl_game.domain.models import Game

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_GAME_COLUMNS = """
    id, name, code, buy_in_cents, banker_address, max_players,
    status, created_by, created_at, updated_at
"""

_INSERT_GAME_SQL = text(f"""
    INSERT INTO games
        (id, name, code, buy_in_cents, banker_address, max_players, status, created_by)
    VALUES
        (:id, :name, :code, :buy_in_cents, :banker_address, :max_players, :status, :created_by)
    ON CONFLICT (code) DO NOTHING
    RETURNING {_GAME_COLUMNS}
""")

_GET_GAME_SQL = text(f"""
    SELECT {_GAME_COLUMNS}
    FROM games
    WHERE id = :game_id
""")

_GET_GAME_FOR_UPDATE_SQL = text(f"""
    SELECT {_GAME_COLUMNS}
    FROM games
    WHERE id = :game_id
    FOR UPDATE
""")

_GET_GAME_BY_CODE_SQL = text(f"""
    SELECT {_GAME_COLUMNS}
    FROM games
    WHERE code = UPPER(:code)
""")

_LIST_GAMES_FOR_USER_SQL = text(f"""
    SELECT {_GAME_COLUMNS}
    FROM games
    WHERE created_by = :user_id
       OR id IN (SELECT game_id FROM players WHERE user_id = :user_id)
    ORDER BY created_at DESC, id DESC
""")

_UPDATE_STATUS_SQL = text(f"""
    UPDATE games
    SET status = :status,
        updated_at = NOW()
    WHERE id = :game_id
    RETURNING {_GAME_COLUMNS}
""")

# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_game(row: object) -> Game:
    return Game(
        id=row.id,  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        code=row.code,  # type: ignore[attr-defined]
        buy_in_cents=row.buy_in_cents,  # type: ignore[attr-defined]
        banker_address=row.banker_address,  # type: ignore[attr-defined]
        max_players=row.max_players,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        created_by=row.created_by,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class GameRepository:
    async def insert_game(self, db: AsyncSession, game: Game) -> Game | None:
        result = await db.execute(
            _INSERT_GAME_SQL,
            {
                "id": game.id,
                "name": game.name,
                "code": game.code,
                "buy_in_cents": game.buy_in_cents,
                "banker_address": game.banker_address,
                "max_players": game.max_players,
                "status": game.status,
                "created_by": game.created_by,
            },
        )
        row = result.fetchone()
        return _row_to_game(row) if row else None

    async def get_game_by_id(self, db: AsyncSession, game_id: str) -> Game | None:
        result = await db.execute(_GET_GAME_SQL, {"game_id": game_id})
        row = result.fetchone()
        return _row_to_game(row) if row else None

    async def get_game_for_update(self, db: AsyncSession, game_id: str) -> Game | None:
        result = await db.execute(_GET_GAME_FOR_UPDATE_SQL, {"game_id": game_id})
        row = result.fetchone()
        return _row_to_game(row) if row else None

    async def get_game_by_code(self, db: AsyncSession, code: str) -> Game | None:
        result = await db.execute(_GET_GAME_BY_CODE_SQL, {"code": code})
        row = result.fetchone()
        return _row_to_game(row) if row else None

    async def list_games_for_user(self, db: AsyncSession, user_id: str) -> list[Game]:
        result = await db.execute(_LIST_GAMES_FOR_USER_SQL, {"user_id": user_id})
        return [_row_to_game(row) for row in result.fetchall()]

    async def update_status(
        self, db: AsyncSession, game_id: str, status: str
    ) -> Game | None:
        result = await db.execute(
            _UPDATE_STATUS_SQL, {"game_id": game_id, "status": status}
        )
        row = result.fetchone()
        return _row_to_game(row) if row else None
