# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field

from leave_engine.models.base import TimestampMixin, UUIDBase
from leave_engine.models.enums import LeaveStatus


class LeaveRequest(UUIDBase, TimestampMixin, table=True):
    """An employee's leave request with approval workflow state."""

    __tablename__ = "leave_request"
    __table_args__ = (
        sa.Index("ix_request_employee_type", "employee_id", "leave_type"),
        sa.Index("ix_request_dates", "start_date", "end_date"),
    )

    employee_id: uuid.UUID = Field(index=True)
    employee_name: str = Field(max_length=255)
    department: str = Field(default="Unassigned", max_length=255)
    department_id: uuid.UUID | None = Field(default=None, index=True)

    leave_type: str = Field(max_length=50)
    start_date: date
    end_date: date
    half_day: bool = False
    half_day_period: str | None = Field(default=None, max_length=20)
    duration: float
    period_year: int

    reason: str
    has_certificate: bool = False
    certificate_kind: str | None = Field(default=None, max_length=255)
    certificate_missing: bool = False

    status: str = Field(
        default=LeaveStatus.PENDING, max_length=50, index=True, sa_column_kwargs={"server_default": "pending"}
    )
    decided_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    decided_by: uuid.UUID | None = None
    decision_note: str | None = None
    rejection_reason: str | None = None
    pay_breakdown_json: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
