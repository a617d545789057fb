# ruff: noqa: TC003
"""Leave transition engine.

Every transition runs inside one transaction on the caller's session: the
leave row and then the employee row are locked, status is re-checked under the
lock, and any failure rolls back both. Notifications are written only after
the transition has committed.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from leavedesk.config import get_settings
from leavedesk.db import atomic
from leavedesk.exceptions import (
    AlreadyCancelledError,
    AlreadyStartedError,
    InsufficientBalanceError,
    IntegrityCheckError,
    InvalidStateError,
    NotFoundError,
    WindowExpiredError,
)
from leavedesk.models.enums import CancelRequestStatus, LeaveStatus, LeaveType, NotificationType
from leavedesk.models.leave import LeaveRequest
from leavedesk.schemas.leave import (
    BalanceChange,
    LeaveListResponse,
    LeaveResponse,
    LeaveStatsResponse,
    TransitionResponse,
)
from leavedesk.services.balance import fetch_stored_balance, get_employee_or_404, read_balance, write_balance
from leavedesk.services.notification import notify
from leavedesk.services.overlap import ACTIVE_STATUSES, check_overlap
from leavedesk.services.validation import (
    calculate_leave_days,
    normalize_leave_type,
    validate_date_range,
    validate_leave_days,
    validate_leave_type,
    validate_reason,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leavedesk.schemas.leave import SubmitLeavePayload

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _resolve_now(now: datetime | None) -> datetime:
    return now if now is not None else datetime.now(UTC)


def _as_utc(value: datetime) -> datetime:
    # SQLite returns naive datetimes for timezone-aware columns.
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _build_leave_response(leave: LeaveRequest) -> LeaveResponse:
    """Map a leave model to its response schema."""
    return LeaveResponse(
        id=leave.id,
        employee_id=leave.employee_id,
        employee_name=leave.employee_name,
        designation=leave.designation,
        leave_type=LeaveType(leave.leave_type),
        start_date=leave.start_date,
        end_date=leave.end_date,
        days=leave.days,
        reason=leave.reason,
        location=leave.location,
        status=LeaveStatus(leave.status),
        remarks=leave.remarks,
        applied_at=leave.applied_at,
        approved_at=leave.approved_at,
        rejected_at=leave.rejected_at,
        cancelled_at=leave.cancelled_at,
        cancel_request_status=(
            CancelRequestStatus(leave.cancel_request_status) if leave.cancel_request_status else None
        ),
        cancel_reason=leave.cancel_reason,
    )


async def _get_leave_or_404(
    session: AsyncSession,
    request_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> LeaveRequest:
    """Fetch a leave request by ID, optionally locking the row. Raises 404 if not found."""
    query = select(LeaveRequest).where(col(LeaveRequest.id) == request_id)
    if for_update:
        # Refresh rows this session already holds so the lock sees committed values.
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await session.execute(query)
    leave = result.scalar_one_or_none()
    if leave is None:
        raise NotFoundError("Leave request not found")
    return leave


def _require_leave_type(leave: LeaveRequest) -> LeaveType:
    leave_type = normalize_leave_type(leave.leave_type)
    if leave_type is None:
        raise InvalidStateError(f"Invalid leave type: {leave.leave_type!r}")
    return leave_type


async def _restore_balance(session: AsyncSession, leave: LeaveRequest, leave_type: LeaveType) -> BalanceChange:
    """Give the request's fixed day count back to the employee. Inverse of the approval deduction."""
    employee = await get_employee_or_404(session, leave.employee_id, for_update=True)
    previous = read_balance(employee, leave_type)
    restored = previous + leave.days
    write_balance(employee, leave_type, restored)
    logger.info(
        "Restored %d %s days to employee=%s for leave=%s: %d -> %d",
        leave.days,
        leave_type,
        leave.employee_id,
        leave.id,
        previous,
        restored,
    )
    return BalanceChange(leave_type=leave_type, previous_balance=previous, new_balance=restored, days=leave.days)


async def _finish(session: AsyncSession, leave: LeaveRequest) -> LeaveResponse:
    # Build the response before any notification write so a failed write cannot expire it.
    await session.refresh(leave)
    return _build_leave_response(leave)


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


async def submit_leave(
    session: AsyncSession,
    payload: SubmitLeavePayload,
    *,
    now: datetime | None = None,
) -> LeaveResponse:
    """Submit a leave request in PENDING state.

    Flow:
    1. Validate type, date range and reason length
    2. Compute the inclusive day count (fixed from here on)
    3. Lock the employee; require a designation
    4. Check the type's balance covers the request
    5. Check for overlapping pending/approved requests
    6. Insert the request
    7. Commit, then notify the administrators

    The balance is only checked here, never deducted.
    """
    current = _resolve_now(now)

    # 1. Validate.
    leave_type = validate_leave_type(payload.leave_type)
    validate_date_range(payload.start_date, payload.end_date, current.date())
    validate_reason(payload.reason)

    # 2. Day count.
    days = calculate_leave_days(payload.start_date, payload.end_date)
    validate_leave_days(days, leave_type)

    async with atomic(session):
        # 3. Employee.
        employee = await get_employee_or_404(session, payload.employee_id, for_update=True)
        if not employee.designation:
            raise InvalidStateError("Employee designation not found")

        # 4. Balance sufficiency.
        balance = read_balance(employee, leave_type)
        if balance < days:
            raise InsufficientBalanceError(
                f"Insufficient leave balance. Current {leave_type} balance: {balance}, Requested: {days} days"
            )

        # 5. Overlap.
        await check_overlap(session, employee.employee_id, payload.start_date, payload.end_date, ACTIVE_STATUSES)

        # 6. Insert.
        leave = LeaveRequest(
            employee_id=employee.employee_id,
            employee_name=employee.full_name,
            designation=employee.designation,
            leave_type=leave_type.value,
            start_date=payload.start_date,
            end_date=payload.end_date,
            days=days,
            reason=payload.reason,
            location=payload.location,
            status=LeaveStatus.PENDING.value,
            applied_at=current,
        )
        session.add(leave)
        await session.flush()

    # 7. Commit done; notify.
    response = await _finish(session, leave)
    logger.info(
        "Leave submitted: leave=%s employee=%s type=%s days=%d", leave.id, leave.employee_id, leave_type, days
    )
    await notify(
        session,
        NotificationType.LEAVE_SUBMITTED,
        f"New leave request from {employee.full_name} ({employee.employee_id}) for {leave_type} "
        f"from {payload.start_date.isoformat()} to {payload.end_date.isoformat()}.",
    )
    return response


async def approve_leave(
    session: AsyncSession,
    request_id: uuid.UUID,
    *,
    now: datetime | None = None,
) -> TransitionResponse:
    """Approve a pending request and deduct its days from the employee's balance.

    Uses the day count stored at submission; it is never recomputed from the
    dates. Balance, ceiling and overlap are re-checked because other approvals
    may have landed since submission. After writing, the balance is read back
    and any mismatch aborts the whole transaction.
    """
    current = _resolve_now(now)

    async with atomic(session):
        leave = await _get_leave_or_404(session, request_id, for_update=True)

        if leave.status == LeaveStatus.APPROVED:
            raise InvalidStateError("Leave request is already approved")
        if leave.status in (LeaveStatus.REJECTED, LeaveStatus.CANCELLED):
            raise InvalidStateError(f"Leave request is already {leave.status.lower()}")

        leave_type = _require_leave_type(leave)
        if leave.end_date < leave.start_date:
            raise InvalidStateError("End date cannot be before start date")

        days = leave.days
        validate_leave_days(days, leave_type)

        employee = await get_employee_or_404(session, leave.employee_id, for_update=True)
        previous = read_balance(employee, leave_type)
        if previous < days:
            raise InsufficientBalanceError(
                f"Insufficient leave balance. Current {leave_type} balance: {previous}, Requested: {days} days"
            )

        await check_overlap(
            session,
            leave.employee_id,
            leave.start_date,
            leave.end_date,
            (LeaveStatus.APPROVED,),
            exclude_request_id=leave.id,
        )

        leave.status = LeaveStatus.APPROVED.value
        leave.approved_at = current
        leave.days = days

        expected = max(0, previous - days)
        write_balance(employee, leave_type, expected)
        await session.flush()

        stored = await fetch_stored_balance(session, employee.employee_id, leave_type)
        if stored != expected:
            logger.error(
                "Balance mismatch after approving leave=%s: expected=%s actual=%s", leave.id, expected, stored
            )
            raise IntegrityCheckError("Balance update verification failed")

    response = await _finish(session, leave)
    logger.info(
        "Leave approved: leave=%s employee=%s %s balance %d -> %d (deducted %d)",
        leave.id,
        leave.employee_id,
        leave_type,
        previous,
        expected,
        days,
    )
    await notify(
        session,
        NotificationType.LEAVE_APPROVED,
        f"Your {leave_type} leave from {leave.start_date.isoformat()} to {leave.end_date.isoformat()} was approved.",
        user_id=leave.employee_id,
    )
    return TransitionResponse(
        leave=response,
        balance=BalanceChange(leave_type=leave_type, previous_balance=previous, new_balance=expected, days=days),
    )


async def reject_leave(
    session: AsyncSession,
    request_id: uuid.UUID,
    remarks: str | None = None,
    *,
    now: datetime | None = None,
) -> LeaveResponse:
    """Reject a pending request. No balance was ever consumed, so none is touched."""
    current = _resolve_now(now)

    async with atomic(session):
        leave = await _get_leave_or_404(session, request_id, for_update=True)
        if leave.status != LeaveStatus.PENDING:
            raise InvalidStateError(f"Only pending leave requests can be rejected, this one is {leave.status.lower()}")

        leave.status = LeaveStatus.REJECTED.value
        leave.rejected_at = current
        leave.remarks = remarks
        await session.flush()

    response = await _finish(session, leave)
    logger.info("Leave rejected: leave=%s employee=%s", leave.id, leave.employee_id)
    await notify(
        session,
        NotificationType.LEAVE_REJECTED,
        f"Your leave request {leave.id} was rejected." + (f" Remarks: {remarks}" if remarks else ""),
        user_id=leave.employee_id,
    )
    return response


async def cancel_leave(
    session: AsyncSession,
    request_id: uuid.UUID,
    remarks: str | None = None,
    *,
    now: datetime | None = None,
) -> TransitionResponse:
    """Administrative cancel of any request that is not already cancelled.

    An approved request gets its days back before the status changes; pending
    and rejected requests never consumed balance.
    """
    current = _resolve_now(now)
    balance: BalanceChange | None = None

    async with atomic(session):
        leave = await _get_leave_or_404(session, request_id, for_update=True)
        if leave.status == LeaveStatus.CANCELLED:
            raise AlreadyCancelledError("Leave request is already cancelled")

        if leave.status == LeaveStatus.APPROVED:
            leave_type = _require_leave_type(leave)
            balance = await _restore_balance(session, leave, leave_type)

        leave.status = LeaveStatus.CANCELLED.value
        leave.cancelled_at = current
        leave.remarks = remarks or "Cancelled by administrator"
        await session.flush()

    response = await _finish(session, leave)
    logger.info("Leave cancelled: leave=%s employee=%s restored=%s", leave.id, leave.employee_id, balance is not None)
    await notify(
        session,
        NotificationType.LEAVE_CANCELLED,
        f"Your leave request {leave.id} was cancelled.",
        user_id=leave.employee_id,
    )
    return TransitionResponse(leave=response, balance=balance)


async def request_cancel(
    session: AsyncSession,
    request_id: uuid.UUID,
    reason: str | None,
    user_id: str,
) -> LeaveResponse:
    """Attach a cancellation request to a leave without changing its status."""
    async with atomic(session):
        leave = await _get_leave_or_404(session, request_id, for_update=True)
        leave.cancel_request_status = CancelRequestStatus.REQUESTED.value
        leave.cancel_reason = reason
        await session.flush()

    response = await _finish(session, leave)
    logger.info("Cancellation requested: leave=%s by user=%s", leave.id, user_id)
    await notify(
        session,
        NotificationType.CANCEL_REQUESTED,
        f"Leave ID {leave.id} of employee {leave.employee_id} requested cancellation by {user_id}.",
    )
    return response


async def approve_cancel(
    session: AsyncSession,
    request_id: uuid.UUID,
    *,
    now: datetime | None = None,
) -> TransitionResponse:
    """Approve a cancellation request.

    An approved leave moves to CANCELLED; its days are returned only if the
    leave starts after today, since time off already underway is not refunded.
    A pending leave is cancelled with no balance effect. Rejected or cancelled
    leaves only record the decision.
    """
    current = _resolve_now(now)
    balance: BalanceChange | None = None

    async with atomic(session):
        leave = await _get_leave_or_404(session, request_id, for_update=True)
        leave.cancel_request_status = CancelRequestStatus.APPROVED.value

        if leave.status == LeaveStatus.APPROVED:
            leave_type = _require_leave_type(leave)
            if leave.start_date > current.date():
                balance = await _restore_balance(session, leave, leave_type)
            else:
                logger.warning(
                    "Leave=%s started on %s; cancellation approved without restoring balance",
                    leave.id,
                    leave.start_date,
                )
            leave.status = LeaveStatus.CANCELLED.value
            leave.cancelled_at = current
        elif leave.status == LeaveStatus.PENDING:
            leave.status = LeaveStatus.CANCELLED.value
            leave.cancelled_at = current

        await session.flush()

    response = await _finish(session, leave)
    logger.info("Cancellation approved: leave=%s restored=%s", leave.id, balance is not None)
    await notify(
        session,
        NotificationType.CANCEL_APPROVED,
        f"Your leave cancellation for ID {leave.id} was approved.",
        user_id=leave.employee_id,
    )
    return TransitionResponse(leave=response, balance=balance)


async def reject_cancel(
    session: AsyncSession,
    request_id: uuid.UUID,
    reason: str | None = None,
) -> LeaveResponse:
    """Reject a cancellation request. The leave itself is unchanged."""
    async with atomic(session):
        leave = await _get_leave_or_404(session, request_id, for_update=True)
        leave.cancel_request_status = CancelRequestStatus.REJECTED.value
        leave.cancel_reason = reason or "Rejected by admin"
        await session.flush()

    response = await _finish(session, leave)
    logger.info("Cancellation rejected: leave=%s", leave.id)
    await notify(
        session,
        NotificationType.CANCEL_REJECTED,
        f"Your leave cancellation for ID {leave.id} was rejected.",
        user_id=leave.employee_id,
    )
    return response


async def cancel_approved_within_window(
    session: AsyncSession,
    leave_id: uuid.UUID,
    employee_id: str,
    reason: str | None = None,
    *,
    now: datetime | None = None,
    window_hours: int | None = None,
) -> TransitionResponse:
    """Employee self-service cancel of their own approved leave.

    Allowed only within ``window_hours`` of approval (48 by default) and only
    while the leave has not started. The days go back to the leave's own type.
    """
    current = _resolve_now(now)
    if window_hours is None:
        window_hours = get_settings().self_cancel_window_hours

    async with atomic(session):
        result = await session.execute(
            select(LeaveRequest)
            .where(col(LeaveRequest.id) == leave_id, col(LeaveRequest.employee_id) == employee_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        leave = result.scalar_one_or_none()
        if leave is None:
            raise NotFoundError("Leave not found for this employee")
        if leave.status != LeaveStatus.APPROVED:
            raise InvalidStateError("Only approved leaves can be cancelled")
        if leave.approved_at is None:
            raise InvalidStateError("Leave does not have an approved date")
        if current - _as_utc(leave.approved_at) > timedelta(hours=window_hours):
            raise WindowExpiredError(f"Cancellation window expired ({window_hours} hours passed)")
        if leave.start_date <= current.date():
            raise AlreadyStartedError("Cannot cancel leave that has already started or passed")

        leave_type = _require_leave_type(leave)
        balance = await _restore_balance(session, leave, leave_type)

        leave.status = LeaveStatus.CANCELLED.value
        leave.cancelled_at = current
        leave.cancel_reason = reason or "Cancelled by employee"
        await session.flush()

    response = await _finish(session, leave)
    logger.info("Leave self-cancelled: leave=%s employee=%s", leave.id, employee_id)
    await notify(
        session,
        NotificationType.LEAVE_CANCELLED,
        f"Leave request {leave.id} has been cancelled by employee {employee_id}.",
    )
    return TransitionResponse(leave=response, balance=balance)


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


async def get_leave(session: AsyncSession, request_id: uuid.UUID) -> LeaveResponse:
    """Get a single leave request by ID."""
    leave = await _get_leave_or_404(session, request_id)
    return _build_leave_response(leave)


async def list_leaves(
    session: AsyncSession,
    status_filter: str | None = None,
    employee_id: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> LeaveListResponse:
    """List leave requests with optional filters, newest application first."""
    filters = []
    if status_filter is not None:
        filters.append(col(LeaveRequest.status) == status_filter.upper())
    if employee_id is not None:
        filters.append(col(LeaveRequest.employee_id) == employee_id)

    count_result = await session.execute(select(func.count()).select_from(LeaveRequest).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(LeaveRequest)
        .where(*filters)
        .order_by(col(LeaveRequest.applied_at).desc(), col(LeaveRequest.created_at).desc())
        .offset(offset)
        .limit(limit)
    )
    return LeaveListResponse(
        items=[_build_leave_response(leave) for leave in result.scalars().all()],
        total=total,
    )


async def get_leave_stats(session: AsyncSession, employee_id: str) -> LeaveStatsResponse:
    """Count an employee's leave requests per status."""
    result = await session.execute(
        select(col(LeaveRequest.status), func.count())
        .where(col(LeaveRequest.employee_id) == employee_id)
        .group_by(col(LeaveRequest.status))
    )
    counts = {status: count for status, count in result.all()}
    return LeaveStatsResponse(
        employee_id=employee_id,
        total=sum(counts.values()),
        pending=counts.get(LeaveStatus.PENDING.value, 0),
        approved=counts.get(LeaveStatus.APPROVED.value, 0),
        rejected=counts.get(LeaveStatus.REJECTED.value, 0),
        cancelled=counts.get(LeaveStatus.CANCELLED.value, 0),
    )
