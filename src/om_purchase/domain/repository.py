from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.om_purchase.domain.models import PurchaseTransaction


class PurchaseTransactionRepositoryProtocol(Protocol):
    async def save(self, db: AsyncSession, tx: PurchaseTransaction) -> None: ...

    async def get_by_id(
        self, db: AsyncSession, transaction_id: str
    ) -> PurchaseTransaction | None: ...
