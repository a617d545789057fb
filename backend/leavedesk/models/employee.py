from __future__ import annotations

from sqlmodel import Field

from leavedesk.models.base import TrackedMixin
from leavedesk.models.enums import EmployeeRole


class Employee(TrackedMixin, table=True):
    """Employee profile carrying the three per-type leave balances."""

    __tablename__ = "employee"

    employee_id: str = Field(primary_key=True, max_length=50)
    full_name: str = Field(max_length=255)
    email: str | None = Field(default=None, max_length=255, unique=True)
    designation: str | None = Field(default=None, max_length=255)
    role: str = Field(default=EmployeeRole.EMPLOYEE, max_length=50, sa_column_kwargs={"server_default": "Employee"})
    status: str = Field(default="Active", max_length=20, sa_column_kwargs={"server_default": "Active"})

    # Opening balances; only approvals, restorations and admin overrides change them.
    cl_balance: int = Field(default=10, sa_column_kwargs={"server_default": "10"})
    rh_balance: int = Field(default=5, sa_column_kwargs={"server_default": "5"})
    el_balance: int = Field(default=18, sa_column_kwargs={"server_default": "18"})
