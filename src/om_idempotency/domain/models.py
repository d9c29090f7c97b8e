from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class IdempotencyRecord:
    """Caller-supplied key → the purchase transaction it produced. Never updated."""

    key: str
    transaction_id: str
    created_at: datetime | None = None
