"""002: create purchase_transactions table

Revision ID: 002
Revises: 001
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE purchase_transactions (
            id                      VARCHAR(64) PRIMARY KEY,
            buyer_id                VARCHAR(64) NOT NULL REFERENCES accounts (id),
            seller_id               VARCHAR(64) REFERENCES accounts (id),
            target_id               VARCHAR(64) NOT NULL REFERENCES accounts (id),
            price                   BIGINT      NOT NULL,
            seller_received         BIGINT,
            target_bonus            BIGINT      NOT NULL,
            buyer_balance_before    BIGINT      NOT NULL,
            buyer_balance_after     BIGINT      NOT NULL,
            seller_balance_before   BIGINT,
            seller_balance_after    BIGINT,
            target_price_before     BIGINT      NOT NULL,
            target_price_after      BIGINT      NOT NULL,
            target_version_before   BIGINT      NOT NULL,
            target_version_after    BIGINT      NOT NULL,
            created_at              TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_purchase_target_version UNIQUE (target_id, target_version_before),
            CONSTRAINT ck_purchase_buyer_not_target CHECK (buyer_id <> target_id),
            CONSTRAINT ck_purchase_version_step CHECK (target_version_after = target_version_before + 1),
            CONSTRAINT ck_purchase_buyer_after_gte_0 CHECK (buyer_balance_after >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_purchase_buyer_time ON purchase_transactions (buyer_id, created_at DESC);")
    op.execute("CREATE INDEX idx_purchase_target_time ON purchase_transactions (target_id, created_at DESC);")
    op.execute("COMMENT ON TABLE purchase_transactions IS 'Committed purchases: insert-only, amounts in cents';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS purchase_transactions CASCADE;")
