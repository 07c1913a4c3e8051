# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from leave_engine.models.enums import HalfDayPeriod, LeaveStatus

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class SubmitRequestPayload(BaseModel):
    """Request body for submitting a new leave request.

    ``leave_type`` stays a plain string so an unknown category surfaces as
    ``UnknownLeaveType`` from the catalog rather than a schema error.
    """

    employee_id: uuid.UUID
    leave_type: str = Field(min_length=1, max_length=50)
    start_date: date
    end_date: date
    half_day: bool = False
    half_day_period: HalfDayPeriod | None = None
    reason: str = Field(max_length=2000)
    has_certificate: bool = False


class DecisionPayload(BaseModel):
    """Request body for approve actions."""

    note: str | None = Field(default=None, max_length=1000)


class RejectPayload(BaseModel):
    """Request body for reject actions. ``reason`` is mandatory at the service level."""

    reason: str | None = Field(default=None, max_length=1000)
    note: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class RequestResponse(BaseModel):
    """Response schema for a single leave request."""

    id: uuid.UUID
    employee_id: uuid.UUID
    employee_name: str
    department: str
    department_id: uuid.UUID | None
    leave_type: str
    start_date: date
    end_date: date
    half_day: bool
    half_day_period: HalfDayPeriod | None
    duration: float
    period_year: int
    reason: str
    has_certificate: bool
    certificate_kind: str | None
    certificate_missing: bool
    status: LeaveStatus
    decided_at: datetime | None
    decided_by: uuid.UUID | None
    decision_note: str | None
    rejection_reason: str | None
    pay_breakdown: dict[str, Any] | None
    created_at: datetime


class RequestListResponse(BaseModel):
    """Paginated list of leave requests."""

    items: list[RequestResponse]
    total: int
