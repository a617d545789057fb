"""Tests for balance normalization, admin overrides, the integrity report and repair."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from leavedesk.exceptions import InvalidInputError, InvalidStateError, NotFoundError
from leavedesk.models import Employee
from leavedesk.models.enums import LeaveType
from leavedesk.schemas.employee import UpdateBalancesRequest
from leavedesk.services import balance as balance_service
from leavedesk.services.balance import (
    clamp_balance,
    fetch_stored_balance,
    find_out_of_bounds_employees,
    get_employee_balances,
    get_integrity_report,
    normalize_balance,
    repair_employee_balances,
    repair_employee_balances_exclusive,
    run_balance_repair,
    update_employee_balances,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

EMPLOYEE_ID = "EMP001"


# ---------------------------------------------------------------------------
# Test helpers
# ---------------------------------------------------------------------------


async def _add_employee(
    session: AsyncSession,
    employee_id: str,
    cl: int = 10,
    rh: int = 5,
    el: int = 18,
) -> None:
    session.add(
        Employee(
            employee_id=employee_id,
            full_name=f"Employee {employee_id}",
            designation="Analyst",
            cl_balance=cl,
            rh_balance=rh,
            el_balance=el,
        )
    )
    await session.commit()


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, 0),
        (-4, 0),
        (0, 0),
        (7, 7),
        (7.9, 7),
        ("12", 12),
        (" 3 ", 3),
        ("abc", 0),
        ("-2", 0),
        (True, 0),
    ],
)
def test_normalize_balance(raw: object, expected: int) -> None:
    assert normalize_balance(raw) == expected


@pytest.mark.parametrize(
    ("leave_type", "raw", "expected"),
    [
        (LeaveType.CASUAL, 45, 30),
        (LeaveType.RESTRICTED_HOLIDAY, 20, 15),
        (LeaveType.EARNED, 25, 18),
        (LeaveType.EARNED, -1, 0),
        (LeaveType.CASUAL, 9, 9),
    ],
)
def test_clamp_balance(leave_type: LeaveType, raw: int, expected: int) -> None:
    assert clamp_balance(raw, leave_type) == expected


# ---------------------------------------------------------------------------
# Reads and overrides
# ---------------------------------------------------------------------------


async def test_get_balances_defaults(db_session: AsyncSession) -> None:
    db_session.add(Employee(employee_id=EMPLOYEE_ID, full_name="John Doe", designation="Engineer"))
    await db_session.commit()

    balances = await get_employee_balances(db_session, EMPLOYEE_ID)
    assert (balances.cl_balance, balances.rh_balance, balances.el_balance) == (10, 5, 18)


async def test_get_balances_reads_negative_as_zero(db_session: AsyncSession) -> None:
    await _add_employee(db_session, EMPLOYEE_ID, el=-3)
    balances = await get_employee_balances(db_session, EMPLOYEE_ID)
    assert balances.el_balance == 0


async def test_get_balances_unknown_employee(db_session: AsyncSession) -> None:
    with pytest.raises(NotFoundError):
        await get_employee_balances(db_session, "EMP404")


async def test_update_balances_partial(db_session: AsyncSession) -> None:
    await _add_employee(db_session, EMPLOYEE_ID)
    result = await update_employee_balances(db_session, EMPLOYEE_ID, UpdateBalancesRequest(el_balance=12))
    assert result.el_balance == 12
    assert result.cl_balance == 10
    assert await fetch_stored_balance(db_session, EMPLOYEE_ID, LeaveType.EARNED) == 12


async def test_update_balances_empty_rejected(db_session: AsyncSession) -> None:
    await _add_employee(db_session, EMPLOYEE_ID)
    with pytest.raises(InvalidInputError, match="No leave balance fields"):
        await update_employee_balances(db_session, EMPLOYEE_ID, UpdateBalancesRequest())


async def test_update_balances_negative_rejected(db_session: AsyncSession) -> None:
    await _add_employee(db_session, EMPLOYEE_ID)
    with pytest.raises(InvalidInputError, match="cannot be negative"):
        await update_employee_balances(db_session, EMPLOYEE_ID, UpdateBalancesRequest(cl_balance=-1))
    assert await fetch_stored_balance(db_session, EMPLOYEE_ID, LeaveType.CASUAL) == 10


# ---------------------------------------------------------------------------
# Integrity report
# ---------------------------------------------------------------------------


async def test_integrity_report_clean(db_session: AsyncSession) -> None:
    await _add_employee(db_session, EMPLOYEE_ID)
    report = await get_integrity_report(db_session)
    assert report.total_employees == 1
    assert report.total_leaves == 0
    assert report.negative_balances == 0
    assert report.over_cap_balances == 0
    assert report.needs_attention is False


async def test_integrity_report_flags_out_of_bounds(db_session: AsyncSession) -> None:
    await _add_employee(db_session, "EMP001", el=-2)
    await _add_employee(db_session, "EMP002", cl=31)
    await _add_employee(db_session, "EMP003")

    report = await get_integrity_report(db_session)
    assert report.total_employees == 3
    assert report.negative_balances == 1
    assert report.over_cap_balances == 1
    assert report.needs_attention is True
    assert await find_out_of_bounds_employees(db_session) == ["EMP001", "EMP002"]


# ---------------------------------------------------------------------------
# Repair
# ---------------------------------------------------------------------------


async def test_repair_clamps_one_employee(db_session: AsyncSession) -> None:
    await _add_employee(db_session, EMPLOYEE_ID, cl=40, rh=-1, el=25)
    repaired = await repair_employee_balances(db_session, EMPLOYEE_ID)
    assert (repaired.cl_balance, repaired.rh_balance, repaired.el_balance) == (30, 0, 18)
    assert await fetch_stored_balance(db_session, EMPLOYEE_ID, LeaveType.RESTRICTED_HOLIDAY) == 0


async def test_repair_is_idempotent(db_session: AsyncSession) -> None:
    await _add_employee(db_session, EMPLOYEE_ID, cl=7, rh=3, el=11)
    repaired = await repair_employee_balances(db_session, EMPLOYEE_ID)
    assert (repaired.cl_balance, repaired.rh_balance, repaired.el_balance) == (7, 3, 11)


async def test_repair_exclusive_refuses_when_in_flight(db_session: AsyncSession) -> None:
    await _add_employee(db_session, EMPLOYEE_ID, el=-5)
    lock = balance_service._repair_locks.setdefault(EMPLOYEE_ID, asyncio.Lock())
    async with lock:
        with pytest.raises(InvalidStateError, match="already in progress"):
            await repair_employee_balances_exclusive(db_session, EMPLOYEE_ID)
    assert await fetch_stored_balance(db_session, EMPLOYEE_ID, LeaveType.EARNED) == -5


async def test_run_repair_sweeps_out_of_bounds(
    db_session: AsyncSession, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    await _add_employee(db_session, "EMP001", el=-2)
    await _add_employee(db_session, "EMP002", rh=16)
    await _add_employee(db_session, "EMP003")

    result = await run_balance_repair(session_factory)
    assert result.scanned == 2
    assert result.repaired == 2
    assert result.skipped == 0
    assert result.errors == 0
    assert [d.employee_id for d in result.details] == ["EMP001", "EMP002"]

    assert await fetch_stored_balance(db_session, "EMP001", LeaveType.EARNED) == 0
    assert await fetch_stored_balance(db_session, "EMP002", LeaveType.RESTRICTED_HOLIDAY) == 15
    assert await find_out_of_bounds_employees(db_session) == []


async def test_run_repair_skips_locked_employee(
    db_session: AsyncSession, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    await _add_employee(db_session, "EMP001", el=-2)
    await _add_employee(db_session, "EMP002", el=-2)

    lock = balance_service._repair_locks.setdefault("EMP001", asyncio.Lock())
    async with lock:
        result = await run_balance_repair(session_factory)

    assert result.scanned == 2
    assert result.repaired == 1
    assert result.skipped == 1
    assert await fetch_stored_balance(db_session, "EMP001", LeaveType.EARNED) == -2


async def test_run_repair_counts_errors(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    result = await run_balance_repair(session_factory, employee_ids=["EMP404"])
    assert result.scanned == 1
    assert result.repaired == 0
    assert result.errors == 1


async def test_run_repair_nothing_to_do(
    db_session: AsyncSession, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    await _add_employee(db_session, EMPLOYEE_ID)
    result = await run_balance_repair(session_factory)
    assert result.to_response().model_dump() == {
        "scanned": 0,
        "repaired": 0,
        "skipped": 0,
        "errors": 0,
        "details": [],
    }


async def test_repair_exclusive_releases_lock_entry(db_session: AsyncSession) -> None:
    await _add_employee(db_session, EMPLOYEE_ID, el=-5)
    await repair_employee_balances_exclusive(db_session, EMPLOYEE_ID)
    assert balance_service._repair_locks == {}

    with pytest.raises(NotFoundError):
        await repair_employee_balances_exclusive(db_session, "EMP404")
    assert balance_service._repair_locks == {}


async def test_run_repair_leaves_no_lock_entries(
    db_session: AsyncSession, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    await _add_employee(db_session, "EMP001", el=-2)
    await _add_employee(db_session, "EMP002", cl=31)

    result = await run_balance_repair(session_factory, employee_ids=["EMP001", "EMP002", "EMP404"])
    assert (result.repaired, result.errors) == (2, 1)
    assert balance_service._repair_locks == {}


async def test_held_lock_survives_refused_claim(db_session: AsyncSession) -> None:
    await _add_employee(db_session, EMPLOYEE_ID, el=-5)
    lock = balance_service._repair_locks.setdefault(EMPLOYEE_ID, asyncio.Lock())
    async with lock:
        with pytest.raises(InvalidStateError):
            await repair_employee_balances_exclusive(db_session, EMPLOYEE_ID)
        assert balance_service._repair_locks[EMPLOYEE_ID] is lock
