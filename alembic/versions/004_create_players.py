"""004: create players table

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE players (
            id                      VARCHAR(64)     PRIMARY KEY,
            game_id                 VARCHAR(64)     NOT NULL REFERENCES games(id),
            user_id                 VARCHAR(64)     NOT NULL,
            wallet_address          VARCHAR(128)    NOT NULL,
            buy_in_cents            BIGINT          NOT NULL,
            status                  VARCHAR(20)     NOT NULL DEFAULT 'ACTIVE',
            final_chip_count_cents  BIGINT,
            joined_at               TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_players_game_user     UNIQUE (game_id, user_id),
            CONSTRAINT ck_players_buy_in        CHECK (buy_in_cents > 0),
            CONSTRAINT ck_players_status        CHECK (
                status IN ('ACTIVE', 'CASHING_OUT', 'CASHED_OUT')
            ),
            CONSTRAINT ck_players_final_count   CHECK (
                final_chip_count_cents IS NULL
                OR (status = 'CASHED_OUT' AND final_chip_count_cents >= 0)
            )
        );
    """)
    op.execute("CREATE INDEX idx_players_game_joined ON players (game_id, joined_at, id);")
    op.execute("CREATE INDEX idx_players_user ON players (user_id);")
    op.execute("""
        CREATE TRIGGER trg_players_updated_at
            BEFORE UPDATE ON players
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS players CASCADE;")
