from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.om_ledger.domain.models import LedgerEntry


class LedgerRepositoryProtocol(Protocol):
    async def create_many(self, db: AsyncSession, entries: list[LedgerEntry]) -> None: ...

    async def list_by_user(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]: ...
