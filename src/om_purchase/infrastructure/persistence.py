"""PurchaseTransactionRepository: purchase_transactions table (insert-only)."""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.om_purchase.domain.models import PurchaseTransaction

_COLUMNS = """
    id, buyer_id, seller_id, target_id, price, seller_received, target_bonus,
    buyer_balance_before, buyer_balance_after,
    seller_balance_before, seller_balance_after,
    target_price_before, target_price_after,
    target_version_before, target_version_after,
    created_at
"""

_INSERT_TRANSACTION_SQL = text(f"""
    INSERT INTO purchase_transactions ({_COLUMNS})
    VALUES (
        :id, :buyer_id, :seller_id, :target_id, :price, :seller_received, :target_bonus,
        :buyer_balance_before, :buyer_balance_after,
        :seller_balance_before, :seller_balance_after,
        :target_price_before, :target_price_after,
        :target_version_before, :target_version_after,
        :created_at
    )
""")

_GET_TRANSACTION_SQL = text(f"SELECT {_COLUMNS} FROM purchase_transactions WHERE id = :id")


def _row_to_transaction(row: Any) -> PurchaseTransaction:
    return PurchaseTransaction(
        id=row.id,
        buyer_id=row.buyer_id,
        seller_id=row.seller_id,
        target_id=row.target_id,
        price=row.price,
        seller_received=row.seller_received,
        target_bonus=row.target_bonus,
        buyer_balance_before=row.buyer_balance_before,
        buyer_balance_after=row.buyer_balance_after,
        seller_balance_before=row.seller_balance_before,
        seller_balance_after=row.seller_balance_after,
        target_price_before=row.target_price_before,
        target_price_after=row.target_price_after,
        target_version_before=row.target_version_before,
        target_version_after=row.target_version_after,
        created_at=row.created_at,
    )


class PurchaseTransactionRepository:
    async def save(self, db: AsyncSession, tx: PurchaseTransaction) -> None:
        await db.execute(
            _INSERT_TRANSACTION_SQL,
            {
                "id": tx.id,
                "buyer_id": tx.buyer_id,
                "seller_id": tx.seller_id,
                "target_id": tx.target_id,
                "price": tx.price,
                "seller_received": tx.seller_received,
                "target_bonus": tx.target_bonus,
                "buyer_balance_before": tx.buyer_balance_before,
                "buyer_balance_after": tx.buyer_balance_after,
                "seller_balance_before": tx.seller_balance_before,
                "seller_balance_after": tx.seller_balance_after,
                "target_price_before": tx.target_price_before,
                "target_price_after": tx.target_price_after,
                "target_version_before": tx.target_version_before,
                "target_version_after": tx.target_version_after,
                "created_at": tx.created_at,
            },
        )

    async def get_by_id(
        self, db: AsyncSession, transaction_id: str
    ) -> PurchaseTransaction | None:
        result = await db.execute(_GET_TRANSACTION_SQL, {"id": transaction_id})
        row = result.fetchone()
        return _row_to_transaction(row) if row else None
