"""Domain models for om_account: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    id: str
    username: str
    balance: int                       # cents, never negative
    price: int                         # cents, cost to acquire this account
    owner_id: str | None               # None = unowned
    version: int                       # +1 per purchase of this account
    purchase_count: int = 0
    deactivated_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_deactivated(self) -> bool:
        return self.deactivated_at is not None
