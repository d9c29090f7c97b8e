"""Domain models for om_purchase: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.om_common.errors import InvalidPurchaseRequestError


@dataclass(frozen=True)
class PurchaseCommand:
    """A buyer's request, carrying their last-known view of the target."""

    buyer_id: str
    target_id: str
    expected_price: int              # cents
    expected_owner_id: str | None
    expected_version: int
    idempotency_key: str

    def validate(self) -> None:
        """Re-check the input constraints the API layer already enforces."""
        if not self.buyer_id:
            raise InvalidPurchaseRequestError("buyer_id must be non-empty")
        if not self.target_id:
            raise InvalidPurchaseRequestError("target_id must be non-empty")
        if self.expected_price < 0:
            raise InvalidPurchaseRequestError("expected_price must be >= 0")
        if self.expected_version < 1:
            raise InvalidPurchaseRequestError("expected_version must be >= 1")
        if not self.idempotency_key:
            raise InvalidPurchaseRequestError("idempotency_key must be non-empty")


@dataclass(frozen=True)
class PurchaseTransaction:
    """One committed purchase. Immutable; all snapshots taken under row locks."""

    id: str
    buyer_id: str
    seller_id: str | None
    target_id: str
    price: int
    seller_received: int | None      # == price when a seller exists
    target_bonus: int
    buyer_balance_before: int
    buyer_balance_after: int
    seller_balance_before: int | None
    seller_balance_after: int | None
    target_price_before: int
    target_price_after: int
    target_version_before: int
    target_version_after: int
    created_at: datetime


@dataclass(frozen=True)
class PurchaseReceipt:
    """Success outcome returned to the caller, identical on idempotent replay."""

    transaction_id: str
    price: int
    target_bonus: int
    buyer_id: str
    buyer_username: str
    target_id: str
    target_username: str
    new_price: int
    buyer_balance: int
    created_at: datetime
