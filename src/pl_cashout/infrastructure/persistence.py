"""CashOutRepository — concrete implementation of CashOutRepositoryProtocol.

All queries use raw text() SQL (no ORM). Uniqueness is enforced by the schema:
  - uq_cash_out_requests_player_pending: one PENDING request per player
  - uq_approvals_request_approver:       one vote per (request, approver)
Both inserts use ON CONFLICT DO NOTHING; an empty RETURNING means "duplicate".

Transaction ownership: the CALLER (application service) commits / rolls back.
"""

from collections import defaultdict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pl_cashout.domain.models import Approval, CashOutRequest

# ---------------------------------------------------------------------------
# SQL: cash_out_requests
# ---------------------------------------------------------------------------

_REQUEST_COLUMNS = """
    id, game_id, player_id, chip_count_cents, status,
    superseded_by, eligible_voters, created_at, updated_at
"""

_INSERT_REQUEST_SQL = text(f"""
    INSERT INTO cash_out_requests (id, game_id, player_id, chip_count_cents, status)
    VALUES (:id, :game_id, :player_id, :chip_count_cents, :status)
    ON CONFLICT (player_id) WHERE status = 'PENDING' DO NOTHING
    RETURNING {_REQUEST_COLUMNS}
""")

_GET_REQUEST_SQL = text(f"""
    SELECT {_REQUEST_COLUMNS}
    FROM cash_out_requests
    WHERE id = :request_id
""")

_GET_REQUEST_FOR_UPDATE_SQL = text(f"""
    SELECT {_REQUEST_COLUMNS}
    FROM cash_out_requests
    WHERE id = :request_id
    FOR UPDATE
""")

_LIST_BY_GAME_SQL = text(f"""
    SELECT {_REQUEST_COLUMNS}
    FROM cash_out_requests
    WHERE game_id = :game_id
      AND (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
    ORDER BY created_at ASC, id ASC
""")

_LIST_BY_PLAYER_SQL = text(f"""
    SELECT {_REQUEST_COLUMNS}
    FROM cash_out_requests
    WHERE player_id = :player_id
    ORDER BY created_at ASC, id ASC
""")

_UPDATE_STATUS_SQL = text(f"""
    UPDATE cash_out_requests
    SET status = :status,
        eligible_voters = COALESCE(CAST(:eligible_voters AS INTEGER), eligible_voters),
        updated_at = NOW()
    WHERE id = :request_id AND status = :expected
    RETURNING {_REQUEST_COLUMNS}
""")

_MARK_SUPERSEDED_SQL = text("""
    UPDATE cash_out_requests
    SET superseded_by = :new_request_id,
        updated_at = NOW()
    WHERE player_id = :player_id
      AND status = 'DISPUTED'
      AND superseded_by IS NULL
      AND id <> :new_request_id
    RETURNING id
""")

# ---------------------------------------------------------------------------
# SQL: approvals
# ---------------------------------------------------------------------------

_APPROVAL_COLUMNS = """
    id, request_id, approver_id, voter_role, approved, counter_value_cents, created_at
"""

_INSERT_APPROVAL_SQL = text(f"""
    INSERT INTO approvals
        (id, request_id, approver_id, voter_role, approved, counter_value_cents)
    VALUES
        (:id, :request_id, :approver_id, :voter_role, :approved, :counter_value_cents)
    ON CONFLICT (request_id, approver_id) DO NOTHING
    RETURNING {_APPROVAL_COLUMNS}
""")

_LIST_APPROVALS_SQL = text(f"""
    SELECT {_APPROVAL_COLUMNS}
    FROM approvals
    WHERE request_id = :request_id
    ORDER BY created_at ASC, id ASC
""")

_LIST_APPROVALS_FOR_REQUESTS_SQL = text(f"""
    SELECT {_APPROVAL_COLUMNS}
    FROM approvals
    WHERE request_id = ANY(:request_ids)
    ORDER BY created_at ASC, id ASC
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_request(row: object) -> CashOutRequest:
    return CashOutRequest(
        id=row.id,  # type: ignore[attr-defined]
        game_id=row.game_id,  # type: ignore[attr-defined]
        player_id=row.player_id,  # type: ignore[attr-defined]
        chip_count_cents=row.chip_count_cents,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        superseded_by=row.superseded_by,  # type: ignore[attr-defined]
        eligible_voters=row.eligible_voters,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_approval(row: object) -> Approval:
    return Approval(
        id=row.id,  # type: ignore[attr-defined]
        request_id=row.request_id,  # type: ignore[attr-defined]
        approver_id=row.approver_id,  # type: ignore[attr-defined]
        voter_role=row.voter_role,  # type: ignore[attr-defined]
        approved=row.approved,  # type: ignore[attr-defined]
        counter_value_cents=row.counter_value_cents,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CashOutRepository:
    async def insert_request(
        self, db: AsyncSession, request: CashOutRequest
    ) -> CashOutRequest | None:
        result = await db.execute(
            _INSERT_REQUEST_SQL,
            {
                "id": request.id,
                "game_id": request.game_id,
                "player_id": request.player_id,
                "chip_count_cents": request.chip_count_cents,
                "status": request.status,
            },
        )
        row = result.fetchone()
        return _row_to_request(row) if row else None

    async def get_request(
        self, db: AsyncSession, request_id: str
    ) -> CashOutRequest | None:
        result = await db.execute(_GET_REQUEST_SQL, {"request_id": request_id})
        row = result.fetchone()
        return _row_to_request(row) if row else None

    async def get_request_for_update(
        self, db: AsyncSession, request_id: str
    ) -> CashOutRequest | None:
        result = await db.execute(_GET_REQUEST_FOR_UPDATE_SQL, {"request_id": request_id})
        row = result.fetchone()
        return _row_to_request(row) if row else None

    async def list_by_game(
        self, db: AsyncSession, game_id: str, status: str | None = None
    ) -> list[CashOutRequest]:
        result = await db.execute(_LIST_BY_GAME_SQL, {"game_id": game_id, "status": status})
        return [_row_to_request(row) for row in result.fetchall()]

    async def list_by_player(
        self, db: AsyncSession, player_id: str
    ) -> list[CashOutRequest]:
        result = await db.execute(_LIST_BY_PLAYER_SQL, {"player_id": player_id})
        return [_row_to_request(row) for row in result.fetchall()]

    async def update_status(
        self,
        db: AsyncSession,
        request_id: str,
        expected: str,
        status: str,
        eligible_voters: int | None = None,
    ) -> CashOutRequest | None:
        result = await db.execute(
            _UPDATE_STATUS_SQL,
            {
                "request_id": request_id,
                "expected": expected,
                "status": status,
                "eligible_voters": eligible_voters,
            },
        )
        row = result.fetchone()
        return _row_to_request(row) if row else None

    async def mark_superseded(
        self, db: AsyncSession, player_id: str, new_request_id: str
    ) -> list[str]:
        result = await db.execute(
            _MARK_SUPERSEDED_SQL,
            {"player_id": player_id, "new_request_id": new_request_id},
        )
        return [row.id for row in result.fetchall()]

    async def insert_approval(
        self, db: AsyncSession, approval: Approval
    ) -> Approval | None:
        result = await db.execute(
            _INSERT_APPROVAL_SQL,
            {
                "id": approval.id,
                "request_id": approval.request_id,
                "approver_id": approval.approver_id,
                "voter_role": approval.voter_role,
                "approved": approval.approved,
                "counter_value_cents": approval.counter_value_cents,
            },
        )
        row = result.fetchone()
        return _row_to_approval(row) if row else None

    async def list_approvals(
        self, db: AsyncSession, request_id: str
    ) -> list[Approval]:
        result = await db.execute(_LIST_APPROVALS_SQL, {"request_id": request_id})
        return [_row_to_approval(row) for row in result.fetchall()]

    async def list_approvals_for_requests(
        self, db: AsyncSession, request_ids: list[str]
    ) -> dict[str, list[Approval]]:
        grouped: dict[str, list[Approval]] = defaultdict(list)
        if not request_ids:
            return grouped
        result = await db.execute(
            _LIST_APPROVALS_FOR_REQUESTS_SQL, {"request_ids": list(request_ids)}
        )
        for row in result.fetchall():
            approval = _row_to_approval(row)
            grouped[approval.request_id].append(approval)
        return grouped
