"""User directory — resolves voter identity, usernames and banker-address equality.

The cash-out core depends on UserDirectoryProtocol only; SqlUserDirectory
reads the ``users`` table with raw text() SQL.
"""

import uuid
from typing import Protocol

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pl_gateway.user.models import DirectoryUser


class UserDirectoryProtocol(Protocol):
    async def get_user(self, db: AsyncSession, user_id: str) -> DirectoryUser | None: ...

    async def get_users(
        self, db: AsyncSession, user_ids: list[str]
    ) -> dict[str, DirectoryUser]: ...


_GET_USER_SQL = text("""
    SELECT CAST(id AS TEXT) AS id, username, wallet_address, is_active
    FROM users
    WHERE id = CAST(:user_id AS UUID)
""")

_GET_USERS_SQL = text("""
    SELECT CAST(id AS TEXT) AS id, username, wallet_address, is_active
    FROM users
    WHERE CAST(id AS TEXT) = ANY(:user_ids)
""")


def _row_to_user(row: object) -> DirectoryUser:
    return DirectoryUser(
        id=row.id,  # type: ignore[attr-defined]
        username=row.username,  # type: ignore[attr-defined]
        wallet_address=row.wallet_address,  # type: ignore[attr-defined]
        is_active=row.is_active,  # type: ignore[attr-defined]
    )


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except (ValueError, TypeError):
        return False
    return True


class SqlUserDirectory:
    async def get_user(self, db: AsyncSession, user_id: str) -> DirectoryUser | None:
        if not _is_uuid(user_id):
            return None
        result = await db.execute(_GET_USER_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_user(row) if row else None

    async def get_users(
        self, db: AsyncSession, user_ids: list[str]
    ) -> dict[str, DirectoryUser]:
        wanted = sorted({uid for uid in user_ids if _is_uuid(uid)})
        if not wanted:
            return {}
        result = await db.execute(_GET_USERS_SQL, {"user_ids": wanted})
        users = [_row_to_user(row) for row in result.fetchall()]
        return {u.id: u for u in users}


def same_address(a: str | None, b: str | None) -> bool:
    """Wallet addresses compare case-insensitively; None never matches."""
    if not a or not b:
        return False
    return a.strip().lower() == b.strip().lower()
