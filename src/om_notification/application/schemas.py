"""Pydantic schemas for om_notification API."""

from typing import Any

from pydantic import BaseModel


class NotificationItem(BaseModel):
    id: int | None
    kind: str
    payload: dict[str, Any]
    read: bool
    created_at: str  # ISO8601 string


class NotificationListResponse(BaseModel):
    items: list[NotificationItem]
    unread_count: int


class MarkReadResponse(BaseModel):
    marked_read: int
