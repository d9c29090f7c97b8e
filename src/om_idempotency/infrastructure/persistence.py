"""IdempotencyRepository: idempotency_keys table.

`put` is INSERT ... ON CONFLICT DO NOTHING: a concurrent or repeated insert
of the same key never overwrites the stored transaction id.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.om_common.errors import DuplicateIdempotencyKeyError
from src.om_idempotency.domain.models import IdempotencyRecord

_GET_KEY_SQL = text("""
    SELECT key, transaction_id, created_at
    FROM idempotency_keys
    WHERE key = :key
""")

_PUT_KEY_SQL = text("""
    INSERT INTO idempotency_keys (key, transaction_id)
    VALUES (:key, :transaction_id)
    ON CONFLICT (key) DO NOTHING
    RETURNING key, transaction_id, created_at
""")

_PURGE_SQL = text("""
    DELETE FROM idempotency_keys
    WHERE created_at < :cutoff
""")


class IdempotencyRepository:
    async def get(self, db: AsyncSession, key: str) -> IdempotencyRecord | None:
        result = await db.execute(_GET_KEY_SQL, {"key": key})
        row = result.fetchone()
        if row is None:
            return None
        return IdempotencyRecord(
            key=row.key, transaction_id=row.transaction_id, created_at=row.created_at
        )

    async def put(
        self, db: AsyncSession, key: str, transaction_id: str
    ) -> IdempotencyRecord:
        result = await db.execute(_PUT_KEY_SQL, {"key": key, "transaction_id": transaction_id})
        row = result.fetchone()
        if row is None:
            raise DuplicateIdempotencyKeyError(key)
        return IdempotencyRecord(
            key=row.key, transaction_id=row.transaction_id, created_at=row.created_at
        )

    async def purge_older_than(self, db: AsyncSession, cutoff: datetime) -> int:
        result = await db.execute(_PURGE_SQL, {"cutoff": cutoff})
        return int(result.rowcount or 0)  # type: ignore[attr-defined]
