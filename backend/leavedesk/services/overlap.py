# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leavedesk.exceptions import ConflictError
from leavedesk.models.enums import LeaveStatus
from leavedesk.models.leave import LeaveRequest

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncSession

ACTIVE_STATUSES = (LeaveStatus.PENDING, LeaveStatus.APPROVED)


async def find_overlapping_leaves(
    session: AsyncSession,
    employee_id: str,
    start_date: date,
    end_date: date,
    statuses: Iterable[LeaveStatus] = ACTIVE_STATUSES,
    exclude_request_id: uuid.UUID | None = None,
) -> list[LeaveRequest]:
    """Return the employee's requests in ``statuses`` whose dates intersect the range.

    Ranges are closed: existing.start <= new.end AND existing.end >= new.start.
    """
    query = select(LeaveRequest).where(
        col(LeaveRequest.employee_id) == employee_id,
        col(LeaveRequest.status).in_([s.value for s in statuses]),
        col(LeaveRequest.start_date) <= end_date,
        col(LeaveRequest.end_date) >= start_date,
    )
    if exclude_request_id is not None:
        query = query.where(col(LeaveRequest.id) != exclude_request_id)

    result = await session.execute(query)
    return list(result.scalars().all())


async def check_overlap(
    session: AsyncSession,
    employee_id: str,
    start_date: date,
    end_date: date,
    statuses: Iterable[LeaveStatus] = ACTIVE_STATUSES,
    exclude_request_id: uuid.UUID | None = None,
) -> None:
    """Raise ConflictError if any matching request overlaps the given range."""
    statuses = tuple(statuses)
    overlapping = await find_overlapping_leaves(
        session, employee_id, start_date, end_date, statuses, exclude_request_id
    )
    if overlapping:
        wording = " or ".join(s.value.lower() for s in statuses)
        raise ConflictError(f"Employee has overlapping {wording} leave requests for this date range")
