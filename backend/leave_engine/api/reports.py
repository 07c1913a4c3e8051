# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query

from leave_engine.api.deps import AdminDep, AuthDep
from leave_engine.db import SessionDep
from leave_engine.exceptions import InvalidRange
from leave_engine.schemas.report import (
    AuditLogListResponse,
    DepartmentSummaryResponse,
    EmployeesOnLeaveResponse,
    LeaveStatsResponse,
)
from leave_engine.services import audit as audit_service
from leave_engine.services import report as report_service

reports_router = APIRouter(prefix="/reports", tags=["reports"])

audit_router = APIRouter(prefix="/audit-log", tags=["reports"])


@reports_router.get("/on-leave", response_model=EmployeesOnLeaveResponse)
async def employees_on_leave(
    session: SessionDep,
    auth: AuthDep,
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
) -> EmployeesOnLeaveResponse:
    """Approved leave overlapping a window (today by default)."""
    start = start_date or date.today()
    end = end_date or start
    if start > end:
        raise InvalidRange(f"start_date {start} is after end_date {end}")
    return await report_service.employees_on_leave(session, start, end)


@reports_router.get("/stats", response_model=LeaveStatsResponse)
async def leave_stats(session: SessionDep, auth: AuthDep) -> LeaveStatsResponse:
    """Request counts by status and employees on leave today."""
    return await report_service.leave_stats(session)


@reports_router.get("/departments/{department_id}", response_model=DepartmentSummaryResponse)
async def department_summary(
    department_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    year: int | None = Query(default=None, ge=2000, le=2100),
) -> DepartmentSummaryResponse:
    """Approved days taken by a department in a year, by type and by employee."""
    return await report_service.department_summary(session, department_id, year or date.today().year)


@audit_router.get("", response_model=AuditLogListResponse)
async def list_audit_log(
    session: SessionDep,
    auth: AdminDep,
    entity_type: str | None = Query(default=None),
    entity_id: uuid.UUID | None = Query(default=None),
    action: str | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> AuditLogListResponse:
    """List audit log entries, newest first (admin only)."""
    return await audit_service.list_audit_log(session, entity_type, entity_id, action, offset, limit)
