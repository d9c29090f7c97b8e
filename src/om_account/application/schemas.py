"""Pydantic schemas and cursor utilities for om_account API."""

import base64
import binascii
import json

from pydantic import BaseModel, Field

from src.om_account.domain.models import Account
from src.om_common.cents import cents_to_display

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (binascii.Error, UnicodeDecodeError, ValueError, KeyError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class OpenAccountRequest(BaseModel):
    username: str = Field(
        ..., min_length=3, max_length=32, pattern=r"^[A-Za-z0-9_]+$"
    )


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class AccountPublicResponse(BaseModel):
    """Everything a buyer needs to fill in the expected_* purchase fields."""

    id: str
    username: str
    price_cents: int
    price_display: str
    owner_id: str | None
    version: int
    purchase_count: int
    deactivated: bool

    @classmethod
    def from_account(cls, account: Account) -> "AccountPublicResponse":
        return cls(
            id=account.id,
            username=account.username,
            price_cents=account.price,
            price_display=cents_to_display(account.price),
            owner_id=account.owner_id,
            version=account.version,
            purchase_count=account.purchase_count,
            deactivated=account.is_deactivated,
        )


class AccountPrivateResponse(AccountPublicResponse):
    balance_cents: int
    balance_display: str

    @classmethod
    def from_account(cls, account: Account) -> "AccountPrivateResponse":
        public = AccountPublicResponse.from_account(account)
        return cls(
            **public.model_dump(),
            balance_cents=account.balance,
            balance_display=cents_to_display(account.balance),
        )


class OpenAccountResponse(BaseModel):
    account: AccountPrivateResponse
    access_token: str
    token_type: str = "bearer"


class OwnedAccountsResponse(BaseModel):
    items: list[AccountPublicResponse]
    portfolio_value_cents: int
    portfolio_value_display: str


class LedgerEntryItem(BaseModel):
    id: int | None
    entry_type: str
    amount_cents: int
    amount_display: str
    balance_after_cents: int
    balance_after_display: str
    reference_type: str | None
    reference_id: str | None
    description: str | None
    created_at: str  # ISO8601 string


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool
