from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class NotificationResponse(BaseModel):
    """A single notification."""

    id: int
    type: str
    message: str
    is_read: bool
    user_id: str | None
    created_at: datetime


class NotificationListResponse(BaseModel):
    """Latest notifications for a recipient."""

    items: list[NotificationResponse]
    total: int
