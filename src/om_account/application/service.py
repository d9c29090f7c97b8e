"""AccountApplicationService: thin composition layer.

Account opening and deactivation manage their own commit/rollback.
Read views (accounts, owned accounts, ledger) run without an explicit
transaction. Balances only ever change through the purchase engine.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.om_account.application.schemas import (
    AccountPrivateResponse,
    AccountPublicResponse,
    LedgerEntryItem,
    LedgerResponse,
    OpenAccountResponse,
    OwnedAccountsResponse,
    cursor_decode,
    cursor_encode,
)
from src.om_account.domain.constants import STARTING_BALANCE, STARTING_PRICE
from src.om_account.domain.models import Account
from src.om_account.domain.repository import AccountRepositoryProtocol
from src.om_account.infrastructure.persistence import AccountRepository
from src.om_common.cents import cents_to_display
from src.om_common.errors import AccountNotFoundError
from src.om_common.id_generator import generate_id
from src.om_gateway.auth.jwt_handler import create_access_token
from src.om_ledger.domain.repository import LedgerRepositoryProtocol
from src.om_ledger.infrastructure.persistence import LedgerRepository


class AccountApplicationService:
    def __init__(
        self,
        repo: AccountRepositoryProtocol | None = None,
        ledger: LedgerRepositoryProtocol | None = None,
    ) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()
        self._ledger: LedgerRepositoryProtocol = ledger or LedgerRepository()

    async def _require(self, db: AsyncSession, account_id: str) -> Account:
        account = await self._repo.get_by_id(db, account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    async def open_account(self, db: AsyncSession, username: str) -> OpenAccountResponse:
        try:
            account = await self._repo.create(
                db, generate_id(), username, STARTING_BALANCE, STARTING_PRICE
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return OpenAccountResponse(
            account=AccountPrivateResponse.from_account(account),
            access_token=create_access_token(account.id),
        )

    async def get_account(self, db: AsyncSession, account_id: str) -> AccountPublicResponse:
        return AccountPublicResponse.from_account(await self._require(db, account_id))

    async def get_own_account(
        self, db: AsyncSession, account_id: str
    ) -> AccountPrivateResponse:
        return AccountPrivateResponse.from_account(await self._require(db, account_id))

    async def deactivate(self, db: AsyncSession, account_id: str) -> AccountPrivateResponse:
        try:
            account = await self._repo.deactivate(db, account_id)
            if account is None:
                raise AccountNotFoundError(account_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return AccountPrivateResponse.from_account(account)

    async def list_owned(
        self, db: AsyncSession, owner_id: str, limit: int
    ) -> OwnedAccountsResponse:
        owned = await self._repo.list_owned_by(db, owner_id, limit)
        value = sum(a.price for a in owned)
        return OwnedAccountsResponse(
            items=[AccountPublicResponse.from_account(a) for a in owned],
            portfolio_value_cents=value,
            portfolio_value_display=cents_to_display(value),
        )

    async def list_ledger(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        entry_type: str | None,
    ) -> LedgerResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._ledger.list_by_user(
            db, user_id, cursor_id, limit + 1, entry_type
        )
        has_more = len(entries) > limit
        page = entries[:limit]

        items = [
            LedgerEntryItem(
                id=e.id,
                entry_type=e.entry_type,
                amount_cents=e.amount,
                amount_display=cents_to_display(e.amount),
                balance_after_cents=e.balance_after,
                balance_after_display=cents_to_display(e.balance_after),
                reference_type=e.reference_type,
                reference_id=e.reference_id,
                description=e.description,
                created_at=e.created_at.isoformat() if e.created_at else "",
            )
            for e in page
        ]

        last_id = page[-1].id if page else None
        next_cursor = cursor_encode(last_id) if has_more and last_id is not None else None
        return LedgerResponse(items=items, next_cursor=next_cursor, has_more=has_more)
