# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

from leavedesk.models.enums import CancelRequestStatus, LeaveStatus, LeaveType

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class SubmitLeavePayload(BaseModel):
    """Request body for submitting a new leave request.

    ``leave_type`` is kept as free text so the engine can normalize it
    (case and surrounding whitespace are ignored) and report bad codes as 400.
    """

    employee_id: str = Field(min_length=1, max_length=50)
    leave_type: str = Field(min_length=1, max_length=20)
    start_date: date
    end_date: date
    reason: str | None = None
    location: str | None = Field(default=None, max_length=255)


class RemarksPayload(BaseModel):
    """Request body for reject/cancel actions."""

    remarks: str | None = Field(default=None, max_length=1000)


class CancelRequestPayload(BaseModel):
    """Request body for an employee asking to cancel a leave."""

    cancel_reason: str | None = Field(default=None, max_length=1000)


class RejectCancelPayload(BaseModel):
    """Request body for an admin rejecting a cancellation request."""

    reason: str | None = Field(default=None, max_length=1000)


class SelfCancelPayload(BaseModel):
    """Request body for an employee cancelling their own approved leave."""

    leave_id: uuid.UUID
    employee_id: str = Field(min_length=1, max_length=50)
    cancel_reason: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeaveResponse(BaseModel):
    """Response schema for a single leave request."""

    id: uuid.UUID
    employee_id: str
    employee_name: str | None
    designation: str | None
    leave_type: LeaveType
    start_date: date
    end_date: date
    days: int
    reason: str | None
    location: str | None
    status: LeaveStatus
    remarks: str | None
    applied_at: datetime | None
    approved_at: datetime | None
    rejected_at: datetime | None
    cancelled_at: datetime | None
    cancel_request_status: CancelRequestStatus | None
    cancel_reason: str | None


class LeaveListResponse(BaseModel):
    """Paginated list of leave requests."""

    items: list[LeaveResponse]
    total: int


class BalanceChange(BaseModel):
    """Before/after snapshot of the balance touched by a transition."""

    leave_type: LeaveType
    previous_balance: int
    new_balance: int
    days: int


class TransitionResponse(BaseModel):
    """A leave request after a transition, with the balance change if any."""

    leave: LeaveResponse
    balance: BalanceChange | None = None


class LeaveStatsResponse(BaseModel):
    """Per-status totals of an employee's leave requests."""

    employee_id: str
    total: int
    pending: int
    approved: int
    rejected: int
    cancelled: int
