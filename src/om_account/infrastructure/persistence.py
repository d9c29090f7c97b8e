"""AccountRepository: concrete implementation of AccountRepositoryProtocol.

Balance and ownership mutations are single UPDATE ... RETURNING statements
guarded in the WHERE clause. A result of 0 rows means the guard failed
(balance would go negative / version moved); the caller decides which
business error that is.

Transaction ownership: The CALLER (application service or purchase engine)
is responsible for committing or rolling back.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.om_account.domain.models import Account
from src.om_common.errors import InternalError, UsernameTakenError

_COLUMNS = """
    id, username, balance, price, owner_id, version, purchase_count,
    deactivated_at, created_at, updated_at
"""

_GET_ACCOUNT_SQL = text(f"SELECT {_COLUMNS} FROM accounts WHERE id = :id")

_LIST_OWNED_SQL = text(f"""
    SELECT {_COLUMNS} FROM accounts
    WHERE owner_id = :owner_id
    ORDER BY price DESC, id
    LIMIT :limit
""")

# Deterministic lock order (by id) so two purchases touching the same pair
# of rows cannot deadlock on the initial lock.
_LOCK_ACCOUNTS_SQL = text(f"""
    SELECT {_COLUMNS} FROM accounts
    WHERE id = ANY(:ids)
    ORDER BY id
    FOR UPDATE
""")

_ADJUST_BALANCE_SQL = text(f"""
    UPDATE accounts
    SET balance = balance + :delta,
        updated_at = NOW()
    WHERE id = :id AND balance + :delta >= 0
    RETURNING {_COLUMNS}
""")

_RECORD_SALE_SQL = text(f"""
    UPDATE accounts
    SET owner_id = :new_owner_id,
        price = :new_price,
        balance = balance + :bonus,
        purchase_count = purchase_count + 1,
        version = version + 1,
        updated_at = NOW()
    WHERE id = :id AND version = :expected_version AND deactivated_at IS NULL
    RETURNING {_COLUMNS}
""")

_INSERT_ACCOUNT_SQL = text(f"""
    INSERT INTO accounts (id, username, balance, price, owner_id, version, purchase_count)
    VALUES (:id, :username, :balance, :price, NULL, 1, 0)
    RETURNING {_COLUMNS}
""")

_DEACTIVATE_SQL = text(f"""
    UPDATE accounts
    SET deactivated_at = COALESCE(deactivated_at, NOW()),
        updated_at = NOW()
    WHERE id = :id
    RETURNING {_COLUMNS}
""")


def _row_to_account(row: Any) -> Account:
    return Account(
        id=row.id,
        username=row.username,
        balance=row.balance,
        price=row.price,
        owner_id=row.owner_id,
        version=row.version,
        purchase_count=row.purchase_count,
        deactivated_at=row.deactivated_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class AccountRepository:
    """Concrete repository: all mutations atomic at the SQL level."""

    async def get_by_id(self, db: AsyncSession, account_id: str) -> Account | None:
        result = await db.execute(_GET_ACCOUNT_SQL, {"id": account_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def list_owned_by(
        self, db: AsyncSession, owner_id: str, limit: int
    ) -> list[Account]:
        result = await db.execute(_LIST_OWNED_SQL, {"owner_id": owner_id, "limit": limit})
        return [_row_to_account(row) for row in result.fetchall()]

    async def lock_for_update(
        self, db: AsyncSession, account_ids: list[str]
    ) -> dict[str, Account]:
        """Row-lock the given accounts until commit/rollback. Missing ids are absent."""
        ids = sorted(set(account_ids))
        result = await db.execute(_LOCK_ACCOUNTS_SQL, {"ids": ids})
        return {row.id: _row_to_account(row) for row in result.fetchall()}

    async def set_lock_timeout(self, db: AsyncSession, timeout_ms: int) -> None:
        # SET does not accept bind parameters; value is coerced to int.
        await db.execute(text(f"SET LOCAL lock_timeout = '{int(timeout_ms)}ms'"))

    async def adjust_balance(
        self, db: AsyncSession, account_id: str, delta: int
    ) -> Account | None:
        result = await db.execute(_ADJUST_BALANCE_SQL, {"id": account_id, "delta": delta})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def record_sale(
        self,
        db: AsyncSession,
        target_id: str,
        new_owner_id: str,
        new_price: int,
        bonus: int,
        expected_version: int,
    ) -> Account | None:
        result = await db.execute(
            _RECORD_SALE_SQL,
            {
                "id": target_id,
                "new_owner_id": new_owner_id,
                "new_price": new_price,
                "bonus": bonus,
                "expected_version": expected_version,
            },
        )
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def create(
        self, db: AsyncSession, account_id: str, username: str, balance: int, price: int
    ) -> Account:
        try:
            result = await db.execute(
                _INSERT_ACCOUNT_SQL,
                {"id": account_id, "username": username, "balance": balance, "price": price},
            )
        except IntegrityError as exc:
            raise UsernameTakenError(username) from exc
        row = result.fetchone()
        if row is None:
            raise InternalError("Account insert returned no rows: this should never happen")
        return _row_to_account(row)

    async def deactivate(self, db: AsyncSession, account_id: str) -> Account | None:
        result = await db.execute(_DEACTIVATE_SQL, {"id": account_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None
