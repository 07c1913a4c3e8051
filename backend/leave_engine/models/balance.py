# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from leave_engine.models.base import TimestampMixin, UUIDBase, now_utc


class LeaveBalance(UUIDBase, TimestampMixin, table=True):
    """Per employee, leave type and accrual year: days entitled, used, held and carried over.

    ``remaining`` is always derived and never stored. ``version`` is the
    optimistic concurrency token checked by every conditional update.
    """

    __tablename__ = "leave_balance"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "leave_type", "period_year", name="uq_balance_employee_type_year"),
        sa.CheckConstraint("used >= 0", name="ck_balance_used_non_negative"),
        sa.CheckConstraint("pending >= 0", name="ck_balance_pending_non_negative"),
        sa.CheckConstraint("carry_over >= 0", name="ck_balance_carry_over_non_negative"),
    )

    employee_id: uuid.UUID = Field(index=True)
    leave_type: str = Field(max_length=50)
    period_year: int
    entitled: float = Field(default=0, sa_column_kwargs={"server_default": "0"})
    used: float = Field(default=0, sa_column_kwargs={"server_default": "0"})
    pending: float = Field(default=0, sa_column_kwargs={"server_default": "0"})
    carry_over: float = Field(default=0, sa_column_kwargs={"server_default": "0"})
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})
    updated_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=now_utc,
        sa_type=sa.DateTime(timezone=True),
        sa_column_kwargs={"server_default": sa.func.now()},
    )

    @property
    def remaining(self) -> float:
        return self.entitled + self.carry_over - self.used - self.pending
