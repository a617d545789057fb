# ruff: noqa: TC001
from __future__ import annotations

from fastapi import APIRouter

from leavedesk.api.deps import AdminDep, AuthDep, require_self_or_admin
from leavedesk.db import SessionDep
from leavedesk.schemas.notification import NotificationListResponse, NotificationResponse
from leavedesk.services import notification as notification_service

notifications_router = APIRouter(prefix="/notifications", tags=["notifications"])


@notifications_router.get("", response_model=NotificationListResponse)
async def list_admin_notifications(
    session: SessionDep,
    auth: AdminDep,
) -> NotificationListResponse:
    """Latest notifications addressed to the administrators."""
    return await notification_service.list_admin_notifications(session)


@notifications_router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: int,
    session: SessionDep,
    auth: AuthDep,
) -> NotificationResponse:
    """Mark one of the caller's notifications as read (admins may mark any)."""
    notification = await notification_service.get_notification(session, notification_id)
    require_self_or_admin(auth, notification.user_id)
    return await notification_service.mark_notification_read(session, notification_id)
