"""Balance store: per-type balances on the employee row, normalization and repair."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sqlalchemy import func, or_, select
from sqlmodel import col

from leavedesk.db import atomic
from leavedesk.exceptions import InvalidInputError, InvalidStateError, NotFoundError
from leavedesk.models.employee import Employee
from leavedesk.models.enums import LeaveType
from leavedesk.models.leave import LeaveRequest
from leavedesk.schemas.employee import BalancesResponse, IntegrityReport, RepairRunResponse
from leavedesk.services.policy import BALANCE_CAPS, BALANCE_FIELDS

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from leavedesk.schemas.employee import UpdateBalancesRequest

logger = logging.getLogger(__name__)

# One lock per employee so overlapping repair sweeps never touch the same row twice.
_repair_locks: dict[str, asyncio.Lock] = {}


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def normalize_balance(value: object) -> int:
    """Coerce a stored balance to a non-negative integer.

    Null and non-numeric values read as 0, negatives are floored at 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        number = int(value)
    elif isinstance(value, str):
        try:
            number = int(value.strip())
        except ValueError:
            return 0
    else:
        return 0
    return max(0, number)


def clamp_balance(value: object, leave_type: LeaveType) -> int:
    """Normalize a balance and cap it at the type's ceiling."""
    return min(BALANCE_CAPS[leave_type], normalize_balance(value))


def read_balance(employee: Employee, leave_type: LeaveType) -> int:
    """Return the employee's normalized balance for ``leave_type``."""
    return normalize_balance(getattr(employee, BALANCE_FIELDS[leave_type]))


def write_balance(employee: Employee, leave_type: LeaveType, value: int) -> None:
    setattr(employee, BALANCE_FIELDS[leave_type], value)


def _build_balances_response(employee: Employee) -> BalancesResponse:
    return BalancesResponse(
        employee_id=employee.employee_id,
        cl_balance=read_balance(employee, LeaveType.CASUAL),
        rh_balance=read_balance(employee, LeaveType.RESTRICTED_HOLIDAY),
        el_balance=read_balance(employee, LeaveType.EARNED),
    )


# ---------------------------------------------------------------------------
# Store access
# ---------------------------------------------------------------------------


async def get_employee_or_404(
    session: AsyncSession,
    employee_id: str,
    *,
    for_update: bool = False,
) -> Employee:
    """Fetch an employee by code, optionally locking the row. Raises 404 if absent."""
    query = select(Employee).where(col(Employee.employee_id) == employee_id)
    if for_update:
        # Refresh rows this session already holds so the lock sees committed values.
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await session.execute(query)
    employee = result.scalar_one_or_none()
    if employee is None:
        raise NotFoundError("Employee not found")
    return employee


async def fetch_stored_balance(session: AsyncSession, employee_id: str, leave_type: LeaveType) -> int | None:
    """Read one balance column straight from the store (flushing pending writes first)."""
    column = getattr(Employee, BALANCE_FIELDS[leave_type])
    result = await session.execute(select(column).where(col(Employee.employee_id) == employee_id))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


async def get_employee_balances(session: AsyncSession, employee_id: str) -> BalancesResponse:
    """Return the employee's normalized balances."""
    employee = await get_employee_or_404(session, employee_id)
    return _build_balances_response(employee)


async def get_integrity_report(session: AsyncSession) -> IntegrityReport:
    """Count employees and leaves, and balances outside [0, cap]."""
    negative_filter = or_(*(getattr(Employee, name) < 0 for name in BALANCE_FIELDS.values()))
    over_cap_filter = or_(
        *(getattr(Employee, BALANCE_FIELDS[leave_type]) > cap for leave_type, cap in BALANCE_CAPS.items())
    )

    total_employees = (await session.execute(select(func.count()).select_from(Employee))).scalar_one()
    total_leaves = (await session.execute(select(func.count()).select_from(LeaveRequest))).scalar_one()
    negative = (
        await session.execute(select(func.count()).select_from(Employee).where(negative_filter))
    ).scalar_one()
    over_cap = (
        await session.execute(select(func.count()).select_from(Employee).where(over_cap_filter))
    ).scalar_one()

    return IntegrityReport(
        total_employees=total_employees,
        total_leaves=total_leaves,
        negative_balances=negative,
        over_cap_balances=over_cap,
        needs_attention=negative > 0 or over_cap > 0,
    )


async def find_out_of_bounds_employees(session: AsyncSession) -> list[str]:
    """Return codes of employees with any balance below 0 or above its cap."""
    conditions = []
    for leave_type, name in BALANCE_FIELDS.items():
        column = getattr(Employee, name)
        conditions.append(column < 0)
        conditions.append(column > BALANCE_CAPS[leave_type])

    result = await session.execute(
        select(col(Employee.employee_id)).where(or_(*conditions)).order_by(col(Employee.employee_id))
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Write path: admin overrides and repair
# ---------------------------------------------------------------------------


async def update_employee_balances(
    session: AsyncSession,
    employee_id: str,
    payload: UpdateBalancesRequest,
) -> BalancesResponse:
    """Overwrite any subset of the employee's balances (admin override)."""
    values = {
        leave_type: getattr(payload, name)
        for leave_type, name in BALANCE_FIELDS.items()
        if getattr(payload, name) is not None
    }
    if not values:
        raise InvalidInputError("No leave balance fields to update")
    for leave_type, value in values.items():
        if value < 0:
            raise InvalidInputError(f"{leave_type} balance cannot be negative")

    async with atomic(session):
        employee = await get_employee_or_404(session, employee_id, for_update=True)
        for leave_type, value in values.items():
            write_balance(employee, leave_type, value)
        await session.flush()

    logger.info("Balances overridden for employee=%s: %s", employee_id, {str(k): v for k, v in values.items()})
    await session.refresh(employee)
    return _build_balances_response(employee)


async def repair_employee_balances(session: AsyncSession, employee_id: str) -> BalancesResponse:
    """Clamp every balance of one employee to [0, cap] and commit."""
    async with atomic(session):
        employee = await get_employee_or_404(session, employee_id, for_update=True)
        before = {leave_type: getattr(employee, name) for leave_type, name in BALANCE_FIELDS.items()}
        for leave_type, stored in before.items():
            write_balance(employee, leave_type, clamp_balance(stored, leave_type))
        await session.flush()

    repaired = _build_balances_response(employee)
    logger.info(
        "Normalized balances for employee=%s: CL %s->%d RH %s->%d EL %s->%d",
        employee_id,
        before[LeaveType.CASUAL],
        repaired.cl_balance,
        before[LeaveType.RESTRICTED_HOLIDAY],
        repaired.rh_balance,
        before[LeaveType.EARNED],
        repaired.el_balance,
    )
    return repaired


@asynccontextmanager
async def _repair_slot(employee_id: str) -> AsyncIterator[bool]:
    """Claim the employee's repair lock. Yields False if a repair is already in flight.

    Claims never wait, so the entry is dropped as soon as the holder releases it.
    """
    lock = _repair_locks.setdefault(employee_id, asyncio.Lock())
    if lock.locked():
        yield False
        return
    try:
        async with lock:
            yield True
    finally:
        if not lock.locked() and _repair_locks.get(employee_id) is lock:
            del _repair_locks[employee_id]


async def repair_employee_balances_exclusive(session: AsyncSession, employee_id: str) -> BalancesResponse:
    """Repair one employee unless a repair for them is already in flight."""
    async with _repair_slot(employee_id) as claimed:
        if not claimed:
            raise InvalidStateError("Balance repair already in progress for this employee")
        return await repair_employee_balances(session, employee_id)


@dataclass
class RepairRunResult:
    """Result of a balance repair sweep."""

    scanned: int = 0
    repaired: int = 0
    skipped: int = 0
    errors: int = 0
    details: list[BalancesResponse] = field(default_factory=list)

    def to_response(self) -> RepairRunResponse:
        return RepairRunResponse(
            scanned=self.scanned,
            repaired=self.repaired,
            skipped=self.skipped,
            errors=self.errors,
            details=self.details,
        )


async def run_balance_repair(
    session_factory: async_sessionmaker[AsyncSession],
    employee_ids: list[str] | None = None,
) -> RepairRunResult:
    """Repair out-of-bound balances, one transaction per employee.

    With no ``employee_ids`` every out-of-bound employee is swept. An employee
    whose repair is already in flight is skipped; a failing employee is logged
    and counted without stopping the sweep.
    """
    if employee_ids is None:
        async with session_factory() as session:
            employee_ids = await find_out_of_bounds_employees(session)

    result = RepairRunResult(scanned=len(employee_ids))
    if employee_ids:
        logger.warning("Found %d employees with out-of-bound balances", len(employee_ids))

    for employee_id in employee_ids:
        async with _repair_slot(employee_id) as claimed:
            if not claimed:
                logger.info("Balance repair already running for employee=%s, skipping", employee_id)
                result.skipped += 1
                continue
            try:
                async with session_factory() as session:
                    repaired = await repair_employee_balances(session, employee_id)
            except Exception:
                logger.exception("Balance repair failed for employee=%s", employee_id)
                result.errors += 1
                continue
        result.repaired += 1
        result.details.append(repaired)

    logger.info(
        "Balance repair complete: scanned=%d repaired=%d skipped=%d errors=%d",
        result.scanned,
        result.repaired,
        result.skipped,
        result.errors,
    )
    return result
