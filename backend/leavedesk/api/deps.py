# ruff: noqa: B008
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, status

from leavedesk.exceptions import AppError
from leavedesk.schemas.auth import AuthContext


async def get_auth_context(
    x_user_id: str = Header(),
    x_role: str = Header(default="employee"),
) -> AuthContext:
    """Extract dev auth context from request headers."""
    return AuthContext(user_id=x_user_id, role=x_role.lower())


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_admin(
    auth: AuthDep,
) -> AuthContext:
    """Require admin role for the request."""
    if not auth.is_admin:
        raise AppError("Admin access required", status_code=status.HTTP_403_FORBIDDEN)
    return auth


AdminDep = Annotated[AuthContext, Depends(require_admin)]


def require_self_or_admin(auth: AuthContext, employee_id: str | None) -> None:
    """Employees may only act on their own records; admins on anyone's.

    A record with no employee (``None``) belongs to the administrators.
    """
    if not auth.is_admin and auth.user_id != employee_id:
        raise AppError("Not authorized to act for this employee", status_code=status.HTTP_403_FORBIDDEN)
