"""004: create notifications table

Revision ID: 004
Revises: 003
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE notifications (
            id          BIGSERIAL   PRIMARY KEY,
            user_id     VARCHAR(64) NOT NULL REFERENCES accounts (id),
            kind        VARCHAR(30) NOT NULL,
            payload     JSONB       NOT NULL DEFAULT '{}'::jsonb,
            read        BOOLEAN     NOT NULL DEFAULT FALSE,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_notifications_kind CHECK (
                kind IN ('YOU_WERE_BOUGHT', 'YOUR_PERSON_SOLD')
            )
        );
    """)
    op.execute("CREATE INDEX idx_notifications_user_time ON notifications (user_id, created_at DESC);")
    op.execute("CREATE INDEX idx_notifications_unread ON notifications (user_id) WHERE read = FALSE;")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS notifications CASCADE;")
