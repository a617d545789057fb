# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from leavedesk.api.deps import AdminDep, AuthDep, require_self_or_admin
from leavedesk.db import SessionDep
from leavedesk.schemas.leave import (
    CancelRequestPayload,
    LeaveListResponse,
    LeaveResponse,
    RejectCancelPayload,
    RemarksPayload,
    SelfCancelPayload,
    SubmitLeavePayload,
    TransitionResponse,
)
from leavedesk.services import leave as leave_service

leaves_router = APIRouter(prefix="/leaves", tags=["leaves"])


@leaves_router.post("", response_model=LeaveResponse, status_code=status.HTTP_201_CREATED)
async def submit_leave(
    payload: SubmitLeavePayload,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveResponse:
    """Submit a new leave request."""
    require_self_or_admin(auth, payload.employee_id)
    return await leave_service.submit_leave(session, payload)


@leaves_router.get("", response_model=LeaveListResponse)
async def list_leaves(
    session: SessionDep,
    auth: AdminDep,
    status_filter: str | None = Query(default=None, alias="status"),
    employee_id: str | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> LeaveListResponse:
    """List leave requests with optional filters (admin only)."""
    return await leave_service.list_leaves(session, status_filter, employee_id, offset, limit)


# Registered before "/{request_id}" routes so the literal path wins.
@leaves_router.post("/cancel-approved", response_model=TransitionResponse)
async def cancel_approved_leave(
    payload: SelfCancelPayload,
    session: SessionDep,
    auth: AuthDep,
) -> TransitionResponse:
    """Cancel your own approved leave within the self-service window."""
    require_self_or_admin(auth, payload.employee_id)
    return await leave_service.cancel_approved_within_window(
        session, payload.leave_id, payload.employee_id, payload.cancel_reason
    )


@leaves_router.get("/{request_id}", response_model=LeaveResponse)
async def get_leave(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveResponse:
    """Get a single leave request."""
    leave = await leave_service.get_leave(session, request_id)
    require_self_or_admin(auth, leave.employee_id)
    return leave


@leaves_router.post("/{request_id}/approve", response_model=TransitionResponse)
async def approve_leave(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> TransitionResponse:
    """Approve a pending leave request and deduct the balance (admin only)."""
    return await leave_service.approve_leave(session, request_id)


@leaves_router.post("/{request_id}/reject", response_model=LeaveResponse)
async def reject_leave(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
    payload: RemarksPayload | None = None,
) -> LeaveResponse:
    """Reject a pending leave request (admin only)."""
    return await leave_service.reject_leave(session, request_id, payload.remarks if payload else None)


@leaves_router.post("/{request_id}/cancel", response_model=TransitionResponse)
async def cancel_leave(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
    payload: RemarksPayload | None = None,
) -> TransitionResponse:
    """Cancel a leave request, restoring balance if it was approved (admin only)."""
    return await leave_service.cancel_leave(session, request_id, payload.remarks if payload else None)


@leaves_router.post("/{request_id}/request-cancel", response_model=LeaveResponse)
async def request_cancel(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    payload: CancelRequestPayload | None = None,
) -> LeaveResponse:
    """Ask an administrator to cancel a leave request."""
    leave = await leave_service.get_leave(session, request_id)
    require_self_or_admin(auth, leave.employee_id)
    return await leave_service.request_cancel(
        session, request_id, payload.cancel_reason if payload else None, auth.user_id
    )


@leaves_router.post("/{request_id}/approve-cancel", response_model=TransitionResponse)
async def approve_cancel(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> TransitionResponse:
    """Approve a cancellation request (admin only)."""
    return await leave_service.approve_cancel(session, request_id)


@leaves_router.post("/{request_id}/reject-cancel", response_model=LeaveResponse)
async def reject_cancel(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
    payload: RejectCancelPayload | None = None,
) -> LeaveResponse:
    """Reject a cancellation request (admin only)."""
    return await leave_service.reject_cancel(session, request_id, payload.reason if payload else None)
