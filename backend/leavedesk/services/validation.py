"""Pure checks run before any leave mutation."""

from __future__ import annotations

from datetime import date, datetime

from leavedesk.exceptions import InvalidInputError
from leavedesk.models.enums import LeaveType
from leavedesk.services.policy import MAX_LEAVE_DAYS, MAX_REASON_LENGTH


def _as_date(value: date | datetime) -> date:
    # Drops the time of day so a late-evening timestamp cannot shift the count.
    if isinstance(value, datetime):
        return value.date()
    return value


def normalize_leave_type(value: str | None) -> LeaveType | None:
    """Return the canonical leave type for a case-insensitive code, or None."""
    code = (value or "").strip().upper()
    try:
        return LeaveType(code)
    except ValueError:
        return None


def validate_leave_type(value: str | None) -> LeaveType:
    """Return the canonical leave type. Raises if it is not CL, RH or EL."""
    leave_type = normalize_leave_type(value)
    if leave_type is None:
        raise InvalidInputError("Invalid leave type. Must be CL, RH, or EL")
    return leave_type


def validate_date_range(start: date | datetime, end: date | datetime, today: date) -> None:
    """Require start on or after today and end on or after start."""
    start_day = _as_date(start)
    end_day = _as_date(end)
    if start_day < today:
        raise InvalidInputError("Invalid date range. Start date must be today or later")
    if end_day < start_day:
        raise InvalidInputError("Invalid date range. End date must not be before start date")


def calculate_leave_days(start: date | datetime, end: date | datetime) -> int:
    """Inclusive day count between two dates, never less than 1."""
    days = (_as_date(end) - _as_date(start)).days + 1
    return max(1, days)


def validate_leave_days(days: int, leave_type: LeaveType) -> None:
    """Require at least one day and no more than the type's ceiling."""
    if days < 1:
        raise InvalidInputError("Leave days must be at least 1")
    ceiling = MAX_LEAVE_DAYS[leave_type]
    if days > ceiling:
        raise InvalidInputError(f"Invalid number of days ({days}) for {leave_type} leave type, maximum is {ceiling}")


def validate_reason(reason: str | None) -> None:
    if reason is not None and len(reason) > MAX_REASON_LENGTH:
        raise InvalidInputError(f"Reason is too long. Maximum {MAX_REASON_LENGTH} characters allowed")
