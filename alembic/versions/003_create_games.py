"""003: create games table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE games (
            id              VARCHAR(64)     PRIMARY KEY,
            name            VARCHAR(100)    NOT NULL,
            code            VARCHAR(12)     NOT NULL,
            buy_in_cents    BIGINT          NOT NULL,
            banker_address  VARCHAR(128),
            max_players     INT,
            status          VARCHAR(20)     NOT NULL DEFAULT 'ACTIVE',
            created_by      VARCHAR(64)     NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_games_code            UNIQUE (code),
            CONSTRAINT ck_games_code_upper      CHECK (code = UPPER(code)),
            CONSTRAINT ck_games_buy_in          CHECK (buy_in_cents > 0),
            CONSTRAINT ck_games_max_players     CHECK (max_players IS NULL OR max_players >= 2),
            CONSTRAINT ck_games_status          CHECK (status IN ('ACTIVE', 'ENDED'))
        );
    """)
    op.execute("CREATE INDEX idx_games_created_by ON games (created_by, created_at DESC);")
    op.execute("""
        CREATE TRIGGER trg_games_updated_at
            BEFORE UPDATE ON games
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS games CASCADE;")
