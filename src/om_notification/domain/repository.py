from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.om_notification.domain.models import Notification


class NotificationRepositoryProtocol(Protocol):
    async def create_many(
        self, db: AsyncSession, notifications: list[Notification]
    ) -> None: ...

    async def list_by_user(
        self, db: AsyncSession, user_id: str, unread_only: bool, limit: int
    ) -> list[Notification]: ...

    async def count_unread(self, db: AsyncSession, user_id: str) -> int: ...

    async def mark_all_read(self, db: AsyncSession, user_id: str) -> int: ...
