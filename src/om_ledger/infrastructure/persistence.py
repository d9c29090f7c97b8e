"""DB helpers for ledger_entries.

Writes are only issued from inside the purchase engine's unit of work;
there is no update or delete path.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.om_ledger.domain.models import LedgerEntry

_INSERT_LEDGER_SQL = text("""
    INSERT INTO ledger_entries
        (user_id, entry_type, amount, balance_after,
         reference_type, reference_id, description)
    VALUES
        (:user_id, :entry_type, :amount, :balance_after,
         :reference_type, :reference_id, :description)
""")

_LIST_LEDGER_SQL = text("""
    SELECT id, user_id, entry_type, amount, balance_after,
           reference_type, reference_id, description, created_at
    FROM ledger_entries
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
      AND (CAST(:entry_type AS VARCHAR) IS NULL OR entry_type = :entry_type)
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_ledger(row: Any) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,
        user_id=row.user_id,
        entry_type=row.entry_type,
        amount=row.amount,
        balance_after=row.balance_after,
        reference_type=row.reference_type,
        reference_id=row.reference_id,
        description=row.description,
        created_at=row.created_at,
    )


class LedgerRepository:
    async def create_many(self, db: AsyncSession, entries: list[LedgerEntry]) -> None:
        """Insert all entries within the caller's transaction (executemany)."""
        if not entries:
            return
        await db.execute(
            _INSERT_LEDGER_SQL,
            [
                {
                    "user_id": e.user_id,
                    "entry_type": e.entry_type,
                    "amount": e.amount,
                    "balance_after": e.balance_after,
                    "reference_type": e.reference_type,
                    "reference_id": e.reference_id,
                    "description": e.description,
                }
                for e in entries
            ],
        )

    async def list_by_user(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_LEDGER_SQL,
            {
                "user_id": user_id,
                "cursor_id": cursor_id,
                "entry_type": entry_type,
                "limit": limit,
            },
        )
        return [_row_to_ledger(row) for row in result.fetchall()]
