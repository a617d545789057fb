from __future__ import annotations

import enum


class LeaveType(enum.StrEnum):
    """Leave types, each backed by one balance column on the employee row."""

    CASUAL = "CL"
    RESTRICTED_HOLIDAY = "RH"
    EARNED = "EL"


class LeaveStatus(enum.StrEnum):
    """Primary state machine for leave requests."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class CancelRequestStatus(enum.StrEnum):
    """Secondary state machine for an employee's cancellation sub-request."""

    REQUESTED = "REQUESTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class EmployeeRole(enum.StrEnum):
    """Role recorded on the employee profile."""

    EMPLOYEE = "Employee"
    ADMIN = "Admin"


class NotificationType(enum.StrEnum):
    """Kind of notification written after a transition."""

    LEAVE_SUBMITTED = "LEAVE_SUBMITTED"
    LEAVE_APPROVED = "LEAVE_APPROVED"
    LEAVE_REJECTED = "LEAVE_REJECTED"
    LEAVE_CANCELLED = "LEAVE_CANCELLED"
    CANCEL_REQUESTED = "CANCEL_REQUESTED"
    CANCEL_APPROVED = "CANCEL_APPROVED"
    CANCEL_REJECTED = "CANCEL_REJECTED"
