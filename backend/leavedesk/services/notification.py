"""Notifications written after a leave transition commits.

Delivery is best-effort: a failed write is logged and never undoes the
transition that triggered it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leavedesk.db import atomic
from leavedesk.exceptions import NotFoundError
from leavedesk.models.notification import Notification
from leavedesk.schemas.notification import NotificationListResponse, NotificationResponse

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leavedesk.models.enums import NotificationType

logger = logging.getLogger(__name__)

_LIST_LIMIT = 50


def _build_notification_response(notification: Notification) -> NotificationResponse:
    return NotificationResponse(
        id=notification.id,  # type: ignore[arg-type]
        type=notification.type,
        message=notification.message,
        is_read=notification.is_read,
        user_id=notification.user_id,
        created_at=notification.created_at,
    )


async def notify(
    session: AsyncSession,
    notification_type: NotificationType,
    message: str,
    user_id: str | None = None,
) -> Notification | None:
    """Write a notification in its own transaction. Returns None if the write failed.

    ``user_id=None`` addresses the administrators.
    """
    notification = Notification(type=notification_type.value, message=message, user_id=user_id)
    try:
        async with atomic(session):
            session.add(notification)
    except Exception:
        logger.exception("Failed to write %s notification for user=%s", notification_type, user_id)
        return None
    return notification


async def _list(session: AsyncSession, user_id: str | None) -> NotificationListResponse:
    recipient = col(Notification.user_id).is_(None) if user_id is None else col(Notification.user_id) == user_id
    result = await session.execute(
        select(Notification)
        .where(recipient)
        .order_by(col(Notification.created_at).desc(), col(Notification.id).desc())
        .limit(_LIST_LIMIT)
    )
    items = [_build_notification_response(n) for n in result.scalars().all()]
    return NotificationListResponse(items=items, total=len(items))


async def list_admin_notifications(session: AsyncSession) -> NotificationListResponse:
    """Latest notifications addressed to the administrators."""
    return await _list(session, None)


async def list_employee_notifications(session: AsyncSession, employee_id: str) -> NotificationListResponse:
    """Latest notifications addressed to one employee."""
    return await _list(session, employee_id)


async def get_notification(session: AsyncSession, notification_id: int) -> NotificationResponse:
    notification = await session.get(Notification, notification_id)
    if notification is None:
        raise NotFoundError("Notification not found")
    return _build_notification_response(notification)


async def mark_notification_read(session: AsyncSession, notification_id: int) -> NotificationResponse:
    async with atomic(session):
        notification = await session.get(Notification, notification_id)
        if notification is None:
            raise NotFoundError("Notification not found")
        notification.is_read = True
    return _build_notification_response(notification)
