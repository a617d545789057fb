from __future__ import annotations

from datetime import date

from leavedesk.models import (
    Employee,
    LeaveRequest,
    Notification,
    SQLModel,
)
from leavedesk.models.enums import EmployeeRole, LeaveStatus, LeaveType

EXPECTED_TABLES = {
    "employee",
    "leave_request",
    "notification",
}


def test_all_tables_registered() -> None:
    table_names = set(SQLModel.metadata.tables.keys())
    assert EXPECTED_TABLES.issubset(table_names)


def test_employee_default_balances() -> None:
    employee = Employee(employee_id="EMP001", full_name="John Doe")
    assert employee.cl_balance == 10
    assert employee.rh_balance == 5
    assert employee.el_balance == 18
    assert employee.role == EmployeeRole.EMPLOYEE
    assert employee.status == "Active"


def test_leave_request_defaults() -> None:
    leave = LeaveRequest(
        employee_id="EMP001",
        leave_type=LeaveType.EARNED,
        start_date=date(2024, 1, 10),
        end_date=date(2024, 1, 12),
        days=3,
    )
    assert leave.id is not None
    assert leave.status == LeaveStatus.PENDING
    assert leave.approved_at is None
    assert leave.cancel_request_status is None


def test_leave_request_constraints() -> None:
    table = SQLModel.metadata.tables["leave_request"]
    names = {c.name for c in table.constraints}
    assert {"ck_leave_type", "ck_leave_days_positive"}.issubset(names)
    assert {fk.target_fullname for fk in table.foreign_keys} == {"employee.employee_id"}


def test_notification_defaults_to_unread() -> None:
    notification = Notification(type="LEAVE_SUBMITTED", message="New leave request")
    assert notification.is_read is False
    assert notification.user_id is None
