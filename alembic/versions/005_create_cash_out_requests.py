"""005: create cash_out_requests table

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE cash_out_requests (
            id                  VARCHAR(64)     PRIMARY KEY,
            game_id             VARCHAR(64)     NOT NULL REFERENCES games(id),
            player_id           VARCHAR(64)     NOT NULL REFERENCES players(id),
            chip_count_cents    BIGINT          NOT NULL,
            status              VARCHAR(20)     NOT NULL DEFAULT 'PENDING',
            superseded_by       VARCHAR(64)     REFERENCES cash_out_requests(id),
            eligible_voters     INTEGER,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_cash_out_requests_chip_count  CHECK (chip_count_cents >= 0),
            CONSTRAINT ck_cash_out_requests_eligible    CHECK (eligible_voters >= 0),
            CONSTRAINT ck_cash_out_requests_status      CHECK (
                status IN ('PENDING', 'DISPUTED', 'APPROVED')
            )
        );
    """)
    # At most one open request per player
    op.execute("""
        CREATE UNIQUE INDEX uq_cash_out_requests_player_pending
            ON cash_out_requests (player_id)
            WHERE status = 'PENDING';
    """)
    op.execute("""
        CREATE INDEX idx_cash_out_requests_game
            ON cash_out_requests (game_id, created_at, id);
    """)
    op.execute("""
        CREATE INDEX idx_cash_out_requests_player
            ON cash_out_requests (player_id, created_at, id);
    """)
    op.execute("""
        CREATE TRIGGER trg_cash_out_requests_updated_at
            BEFORE UPDATE ON cash_out_requests
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS cash_out_requests CASCADE;")
