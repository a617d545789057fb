"""Leave policy constants shared by validation, the transition engine and repair."""

from __future__ import annotations

from leavedesk.models.enums import LeaveType

# Soft caps on stored balances, enforced by the repair routine only.
BALANCE_CAPS: dict[LeaveType, int] = {
    LeaveType.CASUAL: 30,
    LeaveType.RESTRICTED_HOLIDAY: 15,
    LeaveType.EARNED: 18,
}

# Longest single request per leave type, in days.
MAX_LEAVE_DAYS: dict[LeaveType, int] = {
    LeaveType.CASUAL: 30,
    LeaveType.RESTRICTED_HOLIDAY: 15,
    LeaveType.EARNED: 60,
}

# Employee column holding each type's balance.
BALANCE_FIELDS: dict[LeaveType, str] = {
    LeaveType.CASUAL: "cl_balance",
    LeaveType.RESTRICTED_HOLIDAY: "rh_balance",
    LeaveType.EARNED: "el_balance",
}

MAX_REASON_LENGTH = 500
