"""Domain model for om_notification.

A notification is immutable apart from its `read` flag. The payload is a
snapshot of the amounts and identities at commit time.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class Notification:
    user_id: str
    kind: str                               # NotificationType value
    payload: dict[str, Any] = field(default_factory=dict)
    read: bool = False
    id: int | None = None                   # BIGSERIAL, assigned on insert
    created_at: datetime | None = None
