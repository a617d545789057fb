# ruff: noqa: TC003
from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from leavedesk.models.base import utc_timestamp


class Notification(SQLModel, table=True):
    """Notification written as a side effect of a leave transition.

    A null ``user_id`` addresses the administrators.
    """

    __tablename__ = "notification"

    id: int | None = Field(default=None, primary_key=True)
    type: str = Field(max_length=50)
    message: str
    is_read: bool = Field(default=False, sa_column_kwargs={"server_default": sa.false()})
    user_id: str | None = Field(default=None, max_length=50, index=True)
    created_at: datetime = utc_timestamp(index=True)
