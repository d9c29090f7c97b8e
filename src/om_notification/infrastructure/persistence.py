"""NotificationRepository: notifications table, JSONB payload."""

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.om_notification.domain.models import Notification

_INSERT_NOTIFICATION_SQL = text("""
    INSERT INTO notifications (user_id, kind, payload)
    VALUES (:user_id, :kind, CAST(:payload AS JSONB))
""")

_LIST_NOTIFICATIONS_SQL = text("""
    SELECT id, user_id, kind, payload, read, created_at
    FROM notifications
    WHERE user_id = :user_id
      AND (:unread_only = FALSE OR read = FALSE)
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")

_COUNT_UNREAD_SQL = text("""
    SELECT COUNT(*) FROM notifications
    WHERE user_id = :user_id AND read = FALSE
""")

_MARK_ALL_READ_SQL = text("""
    UPDATE notifications
    SET read = TRUE
    WHERE user_id = :user_id AND read = FALSE
""")


def _row_to_notification(row: Any) -> Notification:
    payload = row.payload
    if isinstance(payload, str):
        payload = json.loads(payload)
    return Notification(
        id=row.id,
        user_id=row.user_id,
        kind=row.kind,
        payload=payload,
        read=row.read,
        created_at=row.created_at,
    )


class NotificationRepository:
    async def create_many(
        self, db: AsyncSession, notifications: list[Notification]
    ) -> None:
        if not notifications:
            return
        await db.execute(
            _INSERT_NOTIFICATION_SQL,
            [
                {"user_id": n.user_id, "kind": n.kind, "payload": json.dumps(n.payload)}
                for n in notifications
            ],
        )

    async def list_by_user(
        self, db: AsyncSession, user_id: str, unread_only: bool, limit: int
    ) -> list[Notification]:
        result = await db.execute(
            _LIST_NOTIFICATIONS_SQL,
            {"user_id": user_id, "unread_only": unread_only, "limit": limit},
        )
        return [_row_to_notification(row) for row in result.fetchall()]

    async def count_unread(self, db: AsyncSession, user_id: str) -> int:
        result = await db.execute(_COUNT_UNREAD_SQL, {"user_id": user_id})
        return int(result.scalar_one())

    async def mark_all_read(self, db: AsyncSession, user_id: str) -> int:
        result = await db.execute(_MARK_ALL_READ_SQL, {"user_id": user_id})
        return int(result.rowcount or 0)  # type: ignore[attr-defined]
