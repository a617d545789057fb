"""Tests for best-effort notification writes and the notification read path."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import pytest

from leavedesk.exceptions import NotFoundError
from leavedesk.models.enums import NotificationType
from leavedesk.services import notification as notification_service
from leavedesk.services.notification import (
    get_notification,
    list_admin_notifications,
    list_employee_notifications,
    mark_notification_read,
    notify,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncSession


async def test_notify_admins(db_session: AsyncSession) -> None:
    notification = await notify(db_session, NotificationType.CANCEL_REQUESTED, "Leave 1 requested cancellation.")
    assert notification is not None
    assert notification.id is not None

    admin = await list_admin_notifications(db_session)
    assert admin.total == 1
    assert admin.items[0].message == "Leave 1 requested cancellation."
    assert (await list_employee_notifications(db_session, "EMP001")).total == 0


async def test_notify_employee(db_session: AsyncSession) -> None:
    await notify(db_session, NotificationType.LEAVE_APPROVED, "Approved.", user_id="EMP001")
    await notify(db_session, NotificationType.LEAVE_REJECTED, "Rejected.", user_id="EMP002")

    mine = await list_employee_notifications(db_session, "EMP001")
    assert [n.type for n in mine.items] == [NotificationType.LEAVE_APPROVED]
    assert (await list_admin_notifications(db_session)).total == 0


async def test_notifications_newest_first_and_limited(db_session: AsyncSession) -> None:
    for i in range(55):
        await notify(db_session, NotificationType.LEAVE_APPROVED, f"Message {i}", user_id="EMP001")

    mine = await list_employee_notifications(db_session, "EMP001")
    assert mine.total == 50
    assert mine.items[0].message == "Message 54"


async def test_notify_failure_is_swallowed(db_session: AsyncSession, monkeypatch: pytest.MonkeyPatch) -> None:
    @asynccontextmanager
    async def _broken_atomic(session: AsyncSession) -> AsyncIterator[AsyncSession]:
        raise RuntimeError("notification store unavailable")
        yield session

    monkeypatch.setattr(notification_service, "atomic", _broken_atomic)
    assert await notify(db_session, NotificationType.LEAVE_CANCELLED, "Cancelled.") is None


async def test_mark_read(db_session: AsyncSession) -> None:
    notification = await notify(db_session, NotificationType.LEAVE_APPROVED, "Approved.", user_id="EMP001")
    assert notification is not None and notification.id is not None

    result = await mark_notification_read(db_session, notification.id)
    assert result.is_read is True
    assert (await list_employee_notifications(db_session, "EMP001")).items[0].is_read is True


async def test_mark_read_unknown(db_session: AsyncSession) -> None:
    with pytest.raises(NotFoundError):
        await mark_notification_read(db_session, 12345)


async def test_get_notification_reports_recipient(db_session: AsyncSession) -> None:
    admin = await notify(db_session, NotificationType.CANCEL_REQUESTED, "Requested.")
    mine = await notify(db_session, NotificationType.LEAVE_APPROVED, "Approved.", user_id="EMP001")
    assert admin is not None and admin.id is not None
    assert mine is not None and mine.id is not None

    assert (await get_notification(db_session, admin.id)).user_id is None
    assert (await get_notification(db_session, mine.id)).user_id == "EMP001"
    with pytest.raises(NotFoundError):
        await get_notification(db_session, 12345)
