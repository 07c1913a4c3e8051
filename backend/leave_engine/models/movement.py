# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from leave_engine.models.base import TimestampMixin, UUIDBase


class BalanceMovement(UUIDBase, TimestampMixin, table=True):
    """Append-only record of every change applied to a leave balance."""

    __tablename__ = "leave_balance_movement"
    __table_args__ = (sa.Index("ix_movement_balance", "employee_id", "leave_type", "period_year"),)

    balance_id: uuid.UUID = Field(
        sa_column=sa.Column(
            sa.Uuid, sa.ForeignKey("leave_balance.id", ondelete="CASCADE"), nullable=False, index=True
        ),
    )
    employee_id: uuid.UUID
    leave_type: str = Field(max_length=50)
    period_year: int
    movement_type: str = Field(max_length=50)
    days: float
    request_id: uuid.UUID | None = None
    actor_id: uuid.UUID | None = None
