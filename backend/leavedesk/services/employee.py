from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from leavedesk.exceptions import AppError, NotFoundError
from leavedesk.models.employee import Employee
from leavedesk.schemas.employee import EmployeeListResponse, EmployeeResponse

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leavedesk.schemas.employee import CreateEmployeeRequest


def _build_employee_response(employee: Employee) -> EmployeeResponse:
    """Map an employee model to its response schema."""
    return EmployeeResponse(
        employee_id=employee.employee_id,
        full_name=employee.full_name,
        email=employee.email,
        designation=employee.designation,
        role=employee.role,
        status=employee.status,
        cl_balance=employee.cl_balance,
        rh_balance=employee.rh_balance,
        el_balance=employee.el_balance,
        created_at=employee.created_at,
    )


async def create_employee(session: AsyncSession, payload: CreateEmployeeRequest) -> EmployeeResponse:
    """Register an employee with opening balances."""
    if await session.get(Employee, payload.employee_id) is not None:
        raise AppError("Employee with this ID or email already exists", status_code=409)

    employee = Employee(**payload.model_dump())
    session.add(employee)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise AppError("Employee with this ID or email already exists", status_code=409) from None

    await session.commit()
    await session.refresh(employee)
    return _build_employee_response(employee)


async def get_employee(session: AsyncSession, employee_id: str) -> EmployeeResponse:
    """Look up an employee by code, ignoring case."""
    result = await session.execute(
        select(Employee).where(func.lower(col(Employee.employee_id)) == employee_id.strip().lower())
    )
    employee = result.scalar_one_or_none()
    if employee is None:
        raise NotFoundError("Employee not found")
    return _build_employee_response(employee)


async def list_employees(session: AsyncSession) -> EmployeeListResponse:
    result = await session.execute(select(Employee).order_by(col(Employee.employee_id)))
    items = [_build_employee_response(e) for e in result.scalars().all()]
    return EmployeeListResponse(items=items, total=len(items))
