"""006: create approvals table

Revision ID: 006
Revises: 005
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE approvals (
            id                  VARCHAR(64)     PRIMARY KEY,
            request_id          VARCHAR(64)     NOT NULL REFERENCES cash_out_requests(id),
            approver_id         VARCHAR(64)     NOT NULL,
            voter_role          VARCHAR(10)     NOT NULL,
            approved            BOOLEAN         NOT NULL,
            counter_value_cents BIGINT,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_approvals_request_approver UNIQUE (request_id, approver_id),
            CONSTRAINT ck_approvals_voter_role  CHECK (voter_role IN ('PLAYER', 'BANKER')),
            CONSTRAINT ck_approvals_counter     CHECK (
                counter_value_cents IS NULL
                OR (approved = FALSE AND counter_value_cents >= 0)
            )
        );
    """)
    op.execute("COMMENT ON TABLE approvals IS 'Append-only votes on cash-out requests';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS approvals CASCADE;")
