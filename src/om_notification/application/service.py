"""NotificationApplicationService: read views and the read-flag mutation.

Notifications themselves are only ever created by the purchase engine.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.om_notification.application.schemas import (
    MarkReadResponse,
    NotificationItem,
    NotificationListResponse,
)
from src.om_notification.domain.repository import NotificationRepositoryProtocol
from src.om_notification.infrastructure.persistence import NotificationRepository


class NotificationApplicationService:
    def __init__(self, repo: NotificationRepositoryProtocol | None = None) -> None:
        self._repo: NotificationRepositoryProtocol = repo or NotificationRepository()

    async def list_notifications(
        self, db: AsyncSession, user_id: str, unread_only: bool, limit: int
    ) -> NotificationListResponse:
        notifications = await self._repo.list_by_user(db, user_id, unread_only, limit)
        items = [
            NotificationItem(
                id=n.id,
                kind=n.kind,
                payload=n.payload,
                read=n.read,
                created_at=n.created_at.isoformat() if n.created_at else "",
            )
            for n in notifications
        ]
        unread_count = await self._repo.count_unread(db, user_id)
        return NotificationListResponse(items=items, unread_count=unread_count)

    async def mark_all_read(self, db: AsyncSession, user_id: str) -> MarkReadResponse:
        try:
            count = await self._repo.mark_all_read(db, user_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return MarkReadResponse(marked_read=count)
