"""Domain model for om_ledger: append-only balance-change records."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class LedgerEntry:
    user_id: str
    entry_type: str                  # LedgerEntryType value
    amount: int                      # cents, positive=income negative=expense
    balance_after: int               # cents, balance snapshot after the change
    reference_type: str              # LedgerReferenceType value
    reference_id: str                # originating purchase transaction id
    description: str | None = None
    id: int | None = None            # BIGSERIAL, assigned on insert
    created_at: datetime | None = None
