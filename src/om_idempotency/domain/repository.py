from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.om_idempotency.domain.models import IdempotencyRecord


class IdempotencyRepositoryProtocol(Protocol):
    async def get(self, db: AsyncSession, key: str) -> IdempotencyRecord | None: ...

    async def put(
        self, db: AsyncSession, key: str, transaction_id: str
    ) -> IdempotencyRecord:
        """Create-if-absent. Raises DuplicateIdempotencyKeyError if the key exists."""
        ...

    async def purge_older_than(self, db: AsyncSession, cutoff: datetime) -> int: ...
