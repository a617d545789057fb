from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


def now_utc() -> datetime:
    """Return the current UTC time."""
    return datetime.now(UTC)


def utc_timestamp(*, nullable: bool = False, **column_kwargs: Any) -> Any:
    """Timezone-aware timestamp field. Non-null ones default to now on both sides."""
    if nullable:
        return Field(default=None, sa_type=sa.DateTime(timezone=True), sa_column_kwargs=column_kwargs)  # ty: ignore[invalid-argument-type]
    return Field(
        default_factory=now_utc,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now(), **column_kwargs},
    )


class UUIDBase(SQLModel):
    """Base model with a UUID v4 primary key."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, sa_type=sa.Uuid)


class TimestampMixin(SQLModel):
    """Adds a created_at timestamp."""

    created_at: datetime = utc_timestamp()


class TrackedMixin(TimestampMixin):
    """Adds created_at and an updated_at bumped by the database on every UPDATE."""

    updated_at: datetime = utc_timestamp(onupdate=sa.func.now())
