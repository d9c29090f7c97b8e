"""001: create accounts table and shared trigger function

Revision ID: 001
Revises:
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_touch_updated_at()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TABLE accounts (
            id              VARCHAR(64) PRIMARY KEY,
            username        VARCHAR(32) NOT NULL,
            balance         BIGINT      NOT NULL DEFAULT 0,
            price           BIGINT      NOT NULL,
            owner_id        VARCHAR(64) REFERENCES accounts (id),
            version         BIGINT      NOT NULL DEFAULT 1,
            purchase_count  INTEGER     NOT NULL DEFAULT 0,
            deactivated_at  TIMESTAMPTZ,
            created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_accounts_username         UNIQUE (username),
            CONSTRAINT ck_accounts_balance_gte_0    CHECK (balance >= 0),
            CONSTRAINT ck_accounts_price_gte_0      CHECK (price >= 0),
            CONSTRAINT ck_accounts_version_gte_1    CHECK (version >= 1),
            CONSTRAINT ck_accounts_not_self_owned   CHECK (owner_id IS NULL OR owner_id <> id)
        );
    """)
    op.execute("CREATE INDEX idx_accounts_owner ON accounts (owner_id) WHERE owner_id IS NOT NULL;")
    op.execute("""
        CREATE TRIGGER trg_accounts_updated_at
            BEFORE UPDATE ON accounts
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON TABLE accounts IS 'Ownable user accounts: all amounts in cents';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS accounts CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_touch_updated_at();")
