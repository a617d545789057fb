from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class CreateEmployeeRequest(BaseModel):
    """Request body for registering an employee with opening balances."""

    employee_id: str = Field(min_length=1, max_length=50)
    full_name: str = Field(min_length=1, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    designation: str = Field(min_length=1, max_length=255)
    role: str = Field(default="Employee", pattern=r"^(Employee|Admin)$")
    cl_balance: int = Field(default=10, ge=0)
    rh_balance: int = Field(default=5, ge=0)
    el_balance: int = Field(default=18, ge=0)


class EmployeeResponse(BaseModel):
    """Response schema for an employee."""

    employee_id: str
    full_name: str
    email: str | None
    designation: str | None
    role: str
    status: str
    cl_balance: int
    rh_balance: int
    el_balance: int
    created_at: datetime


class EmployeeListResponse(BaseModel):
    """List of employees."""

    items: list[EmployeeResponse]
    total: int


class BalancesResponse(BaseModel):
    """Normalized balances for one employee."""

    employee_id: str
    cl_balance: int
    rh_balance: int
    el_balance: int


class UpdateBalancesRequest(BaseModel):
    """Admin override of any subset of the three balances."""

    cl_balance: int | None = None
    rh_balance: int | None = None
    el_balance: int | None = None


class RepairRunResponse(BaseModel):
    """Outcome of a balance repair sweep."""

    scanned: int
    repaired: int
    skipped: int
    errors: int
    details: list[BalancesResponse]


class IntegrityReport(BaseModel):
    """Balance health figures surfaced on the health endpoint."""

    total_employees: int
    total_leaves: int
    negative_balances: int
    over_cap_balances: int
    needs_attention: bool
