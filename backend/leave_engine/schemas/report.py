# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel

from leave_engine.schemas.request import RequestResponse


class OnLeaveResponse(BaseModel):
    """Whether an employee is on approved leave on a given day."""

    employee_id: uuid.UUID
    date: date
    on_leave: bool


class EmployeesOnLeaveResponse(BaseModel):
    """Approved requests overlapping a date window."""

    start_date: date
    end_date: date
    items: list[RequestResponse]
    total: int


class LeaveStatsResponse(BaseModel):
    """Request counts by status plus head-count on leave today."""

    total_requests: int
    pending_requests: int
    approved_requests: int
    rejected_requests: int
    cancelled_requests: int
    employees_on_leave_today: int


class EmployeeDaysTaken(BaseModel):
    employee_id: uuid.UUID
    name: str
    days_taken: float


class DepartmentSummaryResponse(BaseModel):
    """Approved leave taken by a department within a year."""

    department_id: uuid.UUID
    year: int
    total_days_taken: float
    by_type: dict[str, float]
    employees: list[EmployeeDaysTaken]


class AuditLogEntryResponse(BaseModel):
    """Response schema for a single audit log entry."""

    id: uuid.UUID
    actor_id: uuid.UUID
    entity_type: str
    entity_id: uuid.UUID
    action: str
    before_json: dict[str, Any] | None
    after_json: dict[str, Any] | None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    """Paginated list of audit log entries."""

    items: list[AuditLogEntryResponse]
    total: int
