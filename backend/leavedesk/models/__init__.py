from sqlmodel import SQLModel

from leavedesk.models.base import TimestampMixin, TrackedMixin, UUIDBase
from leavedesk.models.employee import Employee
from leavedesk.models.enums import (
    CancelRequestStatus,
    EmployeeRole,
    LeaveStatus,
    LeaveType,
    NotificationType,
)
from leavedesk.models.leave import LeaveRequest
from leavedesk.models.notification import Notification

__all__ = [
    "CancelRequestStatus",
    "Employee",
    "EmployeeRole",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveType",
    "Notification",
    "NotificationType",
    "SQLModel",
    "TimestampMixin",
    "TrackedMixin",
    "UUIDBase",
]
