# ruff: noqa: TC003
from __future__ import annotations

from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from leavedesk.models.base import TimestampMixin, UUIDBase, utc_timestamp
from leavedesk.models.enums import LeaveStatus


class LeaveRequest(UUIDBase, TimestampMixin, table=True):
    """A leave request and its approval/cancellation workflow state."""

    __tablename__ = "leave_request"
    __table_args__ = (
        sa.Index("ix_leave_employee_status", "employee_id", "status"),
        sa.CheckConstraint("leave_type IN ('CL', 'RH', 'EL')", name="ck_leave_type"),
        sa.CheckConstraint("days >= 1", name="ck_leave_days_positive"),
    )

    employee_id: str = Field(
        sa_column=sa.Column(
            sa.String(50), sa.ForeignKey("employee.employee_id"), nullable=False, index=True
        ),
    )
    employee_name: str | None = Field(default=None, max_length=255)
    designation: str | None = Field(default=None, max_length=255)
    leave_type: str = Field(max_length=10)
    start_date: date
    end_date: date
    days: int
    reason: str | None = None
    location: str | None = Field(default=None, max_length=255)
    status: str = Field(
        default=LeaveStatus.PENDING, max_length=20, index=True, sa_column_kwargs={"server_default": "PENDING"}
    )
    remarks: str | None = None
    applied_at: datetime | None = utc_timestamp(nullable=True)
    approved_at: datetime | None = utc_timestamp(nullable=True)
    rejected_at: datetime | None = utc_timestamp(nullable=True)
    cancelled_at: datetime | None = utc_timestamp(nullable=True)
    cancel_request_status: str | None = Field(default=None, max_length=20)
    cancel_reason: str | None = None
