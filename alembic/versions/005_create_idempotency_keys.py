"""005: create idempotency_keys table

Revision ID: 005
Revises: 004
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE idempotency_keys (
            key             VARCHAR(128) PRIMARY KEY,
            transaction_id  VARCHAR(64)  NOT NULL REFERENCES purchase_transactions (id),
            created_at      TIMESTAMPTZ  NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("CREATE INDEX idx_idempotency_created ON idempotency_keys (created_at);")
    op.execute("COMMENT ON TABLE idempotency_keys IS 'Purchase retry keys: swept after 24h';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS idempotency_keys CASCADE;")
