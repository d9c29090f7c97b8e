"""PurchaseEngine: atomic, idempotent transfer of ownership.

Flow for one call:
  1. Idempotency short-circuit: a known key replays the stored outcome
     without touching balances.
  2. One unit of work: lock target + buyer (then seller), validate in order,
     write the transaction, move balances, re-price the target, append
     ledger entries and notifications, commit. Any failure rolls back all of it.
  3. After commit, bind the idempotency key to the transaction in its own
     short transaction.

Step 3 runs outside step 2's unit of work. If it is lost, a retry
with the same key re-runs step 2 and is rejected (STALE_DATA / ALREADY_OWN)
because the target's version and owner have already moved; money never moves
twice.

The seller is locked after the sorted target + buyer lock, since the owner
is only known once the target row is read. Two crossed purchases (each buyer
owns the other's target) can therefore deadlock; PostgreSQL aborts one side
and it surfaces as StoreBusyError, to be retried with the same key.

A replay reports the buyer's current balance, not the one recorded at
commit time.

Transaction ownership: the engine commits/rolls back the session it is given.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.om_account.domain.models import Account
from src.om_account.domain.repository import AccountRepositoryProtocol
from src.om_account.infrastructure.persistence import AccountRepository
from src.om_common.database import is_transient_db_error
from src.om_common.datetime_utils import utc_now
from src.om_common.enums import LedgerEntryType, LedgerReferenceType, NotificationType
from src.om_common.errors import (
    DuplicateIdempotencyKeyError,
    IdempotencyKeyReusedError,
    InsufficientFundsError,
    InternalError,
    PurchaseError,
    StaleDataError,
    StoreBusyError,
)
from src.om_common.id_generator import generate_id
from src.om_idempotency.domain.repository import IdempotencyRepositoryProtocol
from src.om_idempotency.infrastructure.persistence import IdempotencyRepository
from src.om_ledger.domain.models import LedgerEntry
from src.om_ledger.domain.repository import LedgerRepositoryProtocol
from src.om_ledger.infrastructure.persistence import LedgerRepository
from src.om_notification.domain.models import Notification
from src.om_notification.domain.repository import NotificationRepositoryProtocol
from src.om_notification.infrastructure.persistence import NotificationRepository
from src.om_purchase.domain.models import (
    PurchaseCommand,
    PurchaseReceipt,
    PurchaseTransaction,
)
from src.om_purchase.domain.pricing import PriceQuote, quote_purchase
from src.om_purchase.domain.repository import PurchaseTransactionRepositoryProtocol
from src.om_purchase.domain.rules import check_purchase
from src.om_purchase.infrastructure.persistence import PurchaseTransactionRepository

logger = logging.getLogger(__name__)


def _build_receipt(
    tx: PurchaseTransaction,
    buyer_username: str,
    target_username: str,
    buyer_balance: int,
) -> PurchaseReceipt:
    return PurchaseReceipt(
        transaction_id=tx.id,
        price=tx.price,
        target_bonus=tx.target_bonus,
        buyer_id=tx.buyer_id,
        buyer_username=buyer_username,
        target_id=tx.target_id,
        target_username=target_username,
        new_price=tx.target_price_after,
        buyer_balance=buyer_balance,
        created_at=tx.created_at,
    )


def _build_transaction(
    buyer: Account, target: Account, seller: Account | None, quote: PriceQuote
) -> PurchaseTransaction:
    return PurchaseTransaction(
        id=generate_id(),
        buyer_id=buyer.id,
        seller_id=seller.id if seller else None,
        target_id=target.id,
        price=quote.price,
        seller_received=quote.price if seller else None,
        target_bonus=quote.target_bonus,
        buyer_balance_before=buyer.balance,
        buyer_balance_after=buyer.balance - quote.price,
        seller_balance_before=seller.balance if seller else None,
        seller_balance_after=seller.balance + quote.price if seller else None,
        target_price_before=target.price,
        target_price_after=quote.new_price,
        target_version_before=target.version,
        target_version_after=target.version + 1,
        created_at=utc_now(),
    )


def _ledger_entries(
    tx: PurchaseTransaction,
    buyer: Account,
    target: Account,
    seller: Account | None,
) -> list[LedgerEntry]:
    """2 entries, or 3 when a previous owner is paid. Accounts are post-update."""
    ref = LedgerReferenceType.PURCHASE.value
    entries = [
        LedgerEntry(
            user_id=buyer.id,
            entry_type=LedgerEntryType.PURCHASE_PAYMENT.value,
            amount=-tx.price,
            balance_after=buyer.balance,
            reference_type=ref,
            reference_id=tx.id,
            description=f"Purchased @{target.username}",
        ),
        LedgerEntry(
            user_id=target.id,
            entry_type=LedgerEntryType.OWNERSHIP_BONUS.value,
            amount=tx.target_bonus,
            balance_after=target.balance,
            reference_type=ref,
            reference_id=tx.id,
            description=f"Bought by @{buyer.username}",
        ),
    ]
    if seller is not None:
        entries.append(
            LedgerEntry(
                user_id=seller.id,
                entry_type=LedgerEntryType.SALE_REVENUE.value,
                amount=tx.price,
                balance_after=seller.balance,
                reference_type=ref,
                reference_id=tx.id,
                description=f"@{target.username} was bought",
            )
        )
    return entries


def _notifications(
    tx: PurchaseTransaction, buyer: Account, target: Account, seller: Account | None
) -> list[Notification]:
    notifications = [
        Notification(
            user_id=target.id,
            kind=NotificationType.YOU_WERE_BOUGHT.value,
            payload={
                "buyer_id": buyer.id,
                "buyer_username": buyer.username,
                "price": tx.price,
                "new_price": tx.target_price_after,
                "bonus": tx.target_bonus,
            },
        )
    ]
    if seller is not None:
        notifications.append(
            Notification(
                user_id=seller.id,
                kind=NotificationType.YOUR_PERSON_SOLD.value,
                payload={
                    "buyer_id": buyer.id,
                    "buyer_username": buyer.username,
                    "target_id": target.id,
                    "target_username": target.username,
                    "price": tx.price,
                },
            )
        )
    return notifications


class PurchaseEngine:
    def __init__(
        self,
        accounts: AccountRepositoryProtocol | None = None,
        transactions: PurchaseTransactionRepositoryProtocol | None = None,
        ledger: LedgerRepositoryProtocol | None = None,
        notifications: NotificationRepositoryProtocol | None = None,
        idempotency: IdempotencyRepositoryProtocol | None = None,
        lock_timeout_ms: int = settings.PURCHASE_LOCK_TIMEOUT_MS,
    ) -> None:
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._transactions: PurchaseTransactionRepositoryProtocol = (
            transactions or PurchaseTransactionRepository()
        )
        self._ledger: LedgerRepositoryProtocol = ledger or LedgerRepository()
        self._notifications: NotificationRepositoryProtocol = (
            notifications or NotificationRepository()
        )
        self._idempotency: IdempotencyRepositoryProtocol = (
            idempotency or IdempotencyRepository()
        )
        self._lock_timeout_ms = lock_timeout_ms

    async def purchase(self, db: AsyncSession, cmd: PurchaseCommand) -> PurchaseReceipt:
        """Main entry point.

        Raises:
            PurchaseError: one of the eight business rejections; nothing written.
            StoreBusyError: lock wait / conflict; retry with the same key.
            IdempotencyKeyReusedError: key already bound to another purchase.
        """
        cmd.validate()

        replayed = await self._replay(db, cmd)
        if replayed is not None:
            return replayed

        try:
            receipt = await self._execute(db, cmd)
            await db.commit()
        except PurchaseError as exc:
            await db.rollback()
            logger.info(
                "Purchase rejected: buyer=%s target=%s reason=%s",
                cmd.buyer_id,
                cmd.target_id,
                exc.reason,
            )
            raise
        except Exception as exc:
            await db.rollback()
            if is_transient_db_error(exc):
                logger.warning(
                    "Purchase aborted on contended store: buyer=%s target=%s key=%s",
                    cmd.buyer_id,
                    cmd.target_id,
                    cmd.idempotency_key,
                )
                raise StoreBusyError() from exc
            raise

        logger.info(
            "Purchase committed: tx=%s buyer=%s target=%s price=%d new_price=%d",
            receipt.transaction_id,
            receipt.buyer_id,
            receipt.target_id,
            receipt.price,
            receipt.new_price,
        )
        await self._remember(db, cmd.idempotency_key, receipt.transaction_id)
        return receipt

    async def _replay(self, db: AsyncSession, cmd: PurchaseCommand) -> PurchaseReceipt | None:
        record = await self._idempotency.get(db, cmd.idempotency_key)
        if record is None:
            return None

        tx = await self._transactions.get_by_id(db, record.transaction_id)
        if tx is None:
            raise InternalError(
                f"Idempotency key {cmd.idempotency_key} points at missing "
                f"transaction {record.transaction_id}"
            )
        if tx.buyer_id != cmd.buyer_id or tx.target_id != cmd.target_id:
            raise IdempotencyKeyReusedError(cmd.idempotency_key)

        buyer = await self._accounts.get_by_id(db, tx.buyer_id)
        target = await self._accounts.get_by_id(db, tx.target_id)
        if buyer is None or target is None:
            raise InternalError(f"Participants of transaction {tx.id} no longer exist")

        logger.info("Purchase idempotency hit: key=%s tx=%s", cmd.idempotency_key, tx.id)
        return _build_receipt(tx, buyer.username, target.username, buyer.balance)

    async def _execute(self, db: AsyncSession, cmd: PurchaseCommand) -> PurchaseReceipt:
        await self._accounts.set_lock_timeout(db, self._lock_timeout_ms)
        locked = await self._accounts.lock_for_update(db, [cmd.target_id, cmd.buyer_id])
        target, buyer = check_purchase(
            cmd, locked.get(cmd.target_id), locked.get(cmd.buyer_id)
        )

        seller: Account | None = None
        if target.owner_id is not None:
            seller = (await self._accounts.lock_for_update(db, [target.owner_id])).get(
                target.owner_id
            )
            if seller is None:
                raise InternalError(f"Owner {target.owner_id} of {target.id} does not exist")

        quote = quote_purchase(target.price)
        tx = _build_transaction(buyer, target, seller, quote)
        await self._transactions.save(db, tx)

        # Guarded updates; None means the row moved under us.
        buyer_after = await self._accounts.adjust_balance(db, buyer.id, -quote.price)
        if buyer_after is None:
            raise InsufficientFundsError(balance=buyer.balance, price=quote.price)

        seller_after: Account | None = None
        if seller is not None:
            seller_after = await self._accounts.adjust_balance(db, seller.id, quote.price)
            if seller_after is None:
                raise InternalError(f"Could not credit previous owner {seller.id}")

        target_after = await self._accounts.record_sale(
            db,
            target_id=target.id,
            new_owner_id=buyer.id,
            new_price=quote.new_price,
            bonus=quote.target_bonus,
            expected_version=target.version,
        )
        if target_after is None:
            raise StaleDataError(
                current_price=target.price,
                current_owner_id=target.owner_id,
                current_version=target.version,
            )

        await self._ledger.create_many(
            db, _ledger_entries(tx, buyer_after, target_after, seller_after)
        )
        await self._notifications.create_many(
            db, _notifications(tx, buyer_after, target_after, seller_after)
        )
        return _build_receipt(tx, buyer.username, target.username, tx.buyer_balance_after)

    async def _remember(self, db: AsyncSession, key: str, transaction_id: str) -> None:
        """Bind key → transaction after commit. Failures are logged, not raised:
        the purchase is already committed and must be reported as such."""
        try:
            await self._idempotency.put(db, key, transaction_id)
            await db.commit()
        except DuplicateIdempotencyKeyError:
            await db.rollback()
            logger.warning(
                "Idempotency key %s already bound; purchase %s committed without it",
                key,
                transaction_id,
            )
        except (SQLAlchemyError, TimeoutError):
            await db.rollback()
            logger.exception(
                "Failed to store idempotency key %s for committed purchase %s",
                key,
                transaction_id,
            )
