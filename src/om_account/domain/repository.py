"""Repository Protocol: dependency inversion for testability.

Unit tests inject an in-memory implementation that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.om_account.domain.models import Account


class AccountRepositoryProtocol(Protocol):
    async def get_by_id(self, db: AsyncSession, account_id: str) -> Account | None: ...

    async def list_owned_by(
        self, db: AsyncSession, owner_id: str, limit: int
    ) -> list[Account]: ...

    async def lock_for_update(
        self, db: AsyncSession, account_ids: list[str]
    ) -> dict[str, Account]: ...

    async def set_lock_timeout(self, db: AsyncSession, timeout_ms: int) -> None: ...

    async def adjust_balance(
        self, db: AsyncSession, account_id: str, delta: int
    ) -> Account | None: ...

    async def record_sale(
        self,
        db: AsyncSession,
        target_id: str,
        new_owner_id: str,
        new_price: int,
        bonus: int,
        expected_version: int,
    ) -> Account | None: ...

    async def create(
        self, db: AsyncSession, account_id: str, username: str, balance: int, price: int
    ) -> Account: ...

    async def deactivate(self, db: AsyncSession, account_id: str) -> Account | None: ...
