"""PlayerRepository — concrete implementation of PlayerRepositoryProtocol.

Status changes are compare-and-set UPDATE ... WHERE status = :expected RETURNING.
A result of 0 rows means the row moved underneath the caller.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pl_player.domain.models import Player

_PLAYER_COLUMNS = """
    id, game_id, user_id, wallet_address, buy_in_cents,
    status, final_chip_count_cents, joined_at, updated_at
"""

_INSERT_PLAYER_SQL = text(f"""
    INSERT INTO players (id, game_id, user_id, wallet_address, buy_in_cents, status)
    VALUES (:id, :game_id, :user_id, :wallet_address, :buy_in_cents, :status)
    ON CONFLICT (game_id, user_id) DO NOTHING
    RETURNING {_PLAYER_COLUMNS}
""")

_GET_PLAYER_BY_ID_SQL = text(f"""
    SELECT {_PLAYER_COLUMNS}
    FROM players
    WHERE id = :player_id
""")

_GET_PLAYER_SQL = text(f"""
    SELECT {_PLAYER_COLUMNS}
    FROM players
    WHERE game_id = :game_id AND user_id = :user_id
""")

_GET_PLAYER_FOR_UPDATE_SQL = text(f"""
    SELECT {_PLAYER_COLUMNS}
    FROM players
    WHERE game_id = :game_id AND user_id = :user_id
    FOR UPDATE
""")

_LIST_PLAYERS_SQL = text(f"""
    SELECT {_PLAYER_COLUMNS}
    FROM players
    WHERE game_id = :game_id
    ORDER BY joined_at ASC, id ASC
""")

_COUNT_PLAYERS_SQL = text("""
    SELECT COUNT(*) AS n FROM players WHERE game_id = :game_id
""")

_UPDATE_STATUS_SQL = text(f"""
    UPDATE players
    SET status = :status,
        updated_at = NOW()
    WHERE id = :player_id AND status = :expected
    RETURNING {_PLAYER_COLUMNS}
""")

_SET_FINAL_CHIP_COUNT_SQL = text(f"""
    UPDATE players
    SET final_chip_count_cents = :chip_count_cents,
        updated_at = NOW()
    WHERE id = :player_id AND status = 'CASHED_OUT'
    RETURNING {_PLAYER_COLUMNS}
""")


def _row_to_player(row: object) -> Player:
    return Player(
        id=row.id,  # type: ignore[attr-defined]
        game_id=row.game_id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        wallet_address=row.wallet_address,  # type: ignore[attr-defined]
        buy_in_cents=row.buy_in_cents,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        final_chip_count_cents=row.final_chip_count_cents,  # type: ignore[attr-defined]
        joined_at=row.joined_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class PlayerRepository:
    async def insert_player(self, db: AsyncSession, player: Player) -> Player | None:
        result = await db.execute(
            _INSERT_PLAYER_SQL,
            {
                "id": player.id,
                "game_id": player.game_id,
                "user_id": player.user_id,
                "wallet_address": player.wallet_address,
                "buy_in_cents": player.buy_in_cents,
                "status": player.status,
            },
        )
        row = result.fetchone()
        return _row_to_player(row) if row else None

    async def get_player_by_id(self, db: AsyncSession, player_id: str) -> Player | None:
        result = await db.execute(_GET_PLAYER_BY_ID_SQL, {"player_id": player_id})
        row = result.fetchone()
        return _row_to_player(row) if row else None

    async def get_player(
        self, db: AsyncSession, game_id: str, user_id: str
    ) -> Player | None:
        result = await db.execute(_GET_PLAYER_SQL, {"game_id": game_id, "user_id": user_id})
        row = result.fetchone()
        return _row_to_player(row) if row else None

    async def get_player_for_update(
        self, db: AsyncSession, game_id: str, user_id: str
    ) -> Player | None:
        result = await db.execute(
            _GET_PLAYER_FOR_UPDATE_SQL, {"game_id": game_id, "user_id": user_id}
        )
        row = result.fetchone()
        return _row_to_player(row) if row else None

    async def list_players(self, db: AsyncSession, game_id: str) -> list[Player]:
        result = await db.execute(_LIST_PLAYERS_SQL, {"game_id": game_id})
        return [_row_to_player(row) for row in result.fetchall()]

    async def count_players(self, db: AsyncSession, game_id: str) -> int:
        result = await db.execute(_COUNT_PLAYERS_SQL, {"game_id": game_id})
        return int(result.scalar_one())

    async def update_status(
        self, db: AsyncSession, player_id: str, expected: str, status: str
    ) -> Player | None:
        result = await db.execute(
            _UPDATE_STATUS_SQL,
            {"player_id": player_id, "expected": expected, "status": status},
        )
        row = result.fetchone()
        return _row_to_player(row) if row else None

    async def set_final_chip_count(
        self, db: AsyncSession, player_id: str, chip_count_cents: int
    ) -> Player | None:
        result = await db.execute(
            _SET_FINAL_CHIP_COUNT_SQL,
            {"player_id": player_id, "chip_count_cents": chip_count_cents},
        )
        row = result.fetchone()
        return _row_to_player(row) if row else None
