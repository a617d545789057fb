# ruff: noqa: B008, TC001
from __future__ import annotations

from fastapi import APIRouter, Query, status

from leavedesk.api.deps import AdminDep, AuthDep, require_self_or_admin
from leavedesk.db import SessionDep, SessionFactoryDep
from leavedesk.schemas.employee import (
    BalancesResponse,
    CreateEmployeeRequest,
    EmployeeListResponse,
    EmployeeResponse,
    RepairRunResponse,
    UpdateBalancesRequest,
)
from leavedesk.schemas.leave import LeaveListResponse, LeaveStatsResponse
from leavedesk.schemas.notification import NotificationListResponse
from leavedesk.services import balance as balance_service
from leavedesk.services import employee as employee_service
from leavedesk.services import leave as leave_service
from leavedesk.services import notification as notification_service

employees_router = APIRouter(prefix="/employees", tags=["employees"])


@employees_router.post("", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(
    payload: CreateEmployeeRequest,
    session: SessionDep,
    auth: AdminDep,
) -> EmployeeResponse:
    """Register an employee with opening balances (admin only)."""
    return await employee_service.create_employee(session, payload)


@employees_router.get("", response_model=EmployeeListResponse)
async def list_employees(
    session: SessionDep,
    auth: AdminDep,
) -> EmployeeListResponse:
    """List all employees (admin only)."""
    return await employee_service.list_employees(session)


@employees_router.post("/repair-balances", response_model=RepairRunResponse)
async def repair_all_balances(
    session_factory: SessionFactoryDep,
    auth: AdminDep,
) -> RepairRunResponse:
    """Clamp every out-of-bound balance to [0, cap] (admin only)."""
    result = await balance_service.run_balance_repair(session_factory)
    return result.to_response()


@employees_router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(
    employee_id: str,
    session: SessionDep,
    auth: AuthDep,
) -> EmployeeResponse:
    """Get an employee by code (case-insensitive)."""
    employee = await employee_service.get_employee(session, employee_id)
    require_self_or_admin(auth, employee.employee_id)
    return employee


@employees_router.get("/{employee_id}/balances", response_model=BalancesResponse)
async def get_balances(
    employee_id: str,
    session: SessionDep,
    auth: AuthDep,
) -> BalancesResponse:
    """Get an employee's normalized leave balances."""
    require_self_or_admin(auth, employee_id)
    return await balance_service.get_employee_balances(session, employee_id)


@employees_router.patch("/{employee_id}/balances", response_model=BalancesResponse)
async def update_balances(
    employee_id: str,
    payload: UpdateBalancesRequest,
    session: SessionDep,
    auth: AdminDep,
) -> BalancesResponse:
    """Override an employee's leave balances (admin only)."""
    return await balance_service.update_employee_balances(session, employee_id, payload)


@employees_router.post("/{employee_id}/repair-balances", response_model=BalancesResponse)
async def repair_balances(
    employee_id: str,
    session: SessionDep,
    auth: AdminDep,
) -> BalancesResponse:
    """Clamp one employee's balances to [0, cap] (admin only)."""
    return await balance_service.repair_employee_balances_exclusive(session, employee_id)


@employees_router.get("/{employee_id}/leaves", response_model=LeaveListResponse)
async def list_employee_leaves(
    employee_id: str,
    session: SessionDep,
    auth: AuthDep,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> LeaveListResponse:
    """List one employee's leave requests, newest first."""
    require_self_or_admin(auth, employee_id)
    return await leave_service.list_leaves(session, employee_id=employee_id, offset=offset, limit=limit)


@employees_router.get("/{employee_id}/leave-stats", response_model=LeaveStatsResponse)
async def get_leave_stats(
    employee_id: str,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveStatsResponse:
    """Count one employee's leave requests per status."""
    require_self_or_admin(auth, employee_id)
    return await leave_service.get_leave_stats(session, employee_id)


@employees_router.get("/{employee_id}/notifications", response_model=NotificationListResponse)
async def list_employee_notifications(
    employee_id: str,
    session: SessionDep,
    auth: AuthDep,
) -> NotificationListResponse:
    """Latest notifications addressed to one employee."""
    require_self_or_admin(auth, employee_id)
    return await notification_service.list_employee_notifications(session, employee_id)
