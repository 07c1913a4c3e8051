# ruff: noqa: TC003
from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from leave_engine.models.enums import LeaveStatus
from leave_engine.models.request import LeaveRequest
from leave_engine.schemas.report import (
    DepartmentSummaryResponse,
    EmployeeDaysTaken,
    EmployeesOnLeaveResponse,
    LeaveStatsResponse,
)
from leave_engine.services.request import build_request_response

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


def _approved_overlapping(start_date: date, end_date: date) -> list:
    return [
        col(LeaveRequest.status) == LeaveStatus.APPROVED.value,
        col(LeaveRequest.start_date) <= end_date,
        col(LeaveRequest.end_date) >= start_date,
    ]


async def is_on_leave(session: AsyncSession, employee_id: uuid.UUID, day: date) -> bool:
    """True when an approved request covers ``day``."""
    result = await session.execute(
        select(func.count())
        .select_from(LeaveRequest)
        .where(col(LeaveRequest.employee_id) == employee_id, *_approved_overlapping(day, day))
    )
    return result.scalar_one() > 0


async def employees_on_leave(
    session: AsyncSession,
    start_date: date,
    end_date: date,
) -> EmployeesOnLeaveResponse:
    """Approved requests overlapping the window, ordered by start date."""
    result = await session.execute(
        select(LeaveRequest)
        .where(*_approved_overlapping(start_date, end_date))
        .order_by(col(LeaveRequest.start_date), col(LeaveRequest.employee_name))
    )
    requests = list(result.scalars().all())
    return EmployeesOnLeaveResponse(
        start_date=start_date,
        end_date=end_date,
        items=[build_request_response(r) for r in requests],
        total=len(requests),
    )


async def leave_stats(session: AsyncSession, today: date | None = None) -> LeaveStatsResponse:
    """Request counts by status and head-count on leave today."""
    today = today or date.today()

    result = await session.execute(
        select(col(LeaveRequest.status), func.count()).group_by(col(LeaveRequest.status))
    )
    counts: dict[str, int] = {status: count for status, count in result.all()}

    on_leave_result = await session.execute(
        select(func.count(func.distinct(col(LeaveRequest.employee_id)))).where(*_approved_overlapping(today, today))
    )

    return LeaveStatsResponse(
        total_requests=sum(counts.values()),
        pending_requests=counts.get(LeaveStatus.PENDING.value, 0),
        approved_requests=counts.get(LeaveStatus.APPROVED.value, 0),
        rejected_requests=counts.get(LeaveStatus.REJECTED.value, 0),
        cancelled_requests=counts.get(LeaveStatus.CANCELLED.value, 0),
        employees_on_leave_today=on_leave_result.scalar_one(),
    )


async def department_summary(
    session: AsyncSession,
    department_id: uuid.UUID,
    year: int,
) -> DepartmentSummaryResponse:
    """Approved days taken in a department for one accrual year.

    Employees are listed by days taken, highest first.
    """
    result = await session.execute(
        select(LeaveRequest).where(
            col(LeaveRequest.department_id) == department_id,
            col(LeaveRequest.status) == LeaveStatus.APPROVED.value,
            col(LeaveRequest.period_year) == year,
        )
    )

    by_type: dict[str, float] = defaultdict(float)
    by_employee: dict[uuid.UUID, float] = defaultdict(float)
    names: dict[uuid.UUID, str] = {}
    for leave_request in result.scalars().all():
        by_type[leave_request.leave_type] += leave_request.duration
        by_employee[leave_request.employee_id] += leave_request.duration
        names[leave_request.employee_id] = leave_request.employee_name

    employees = sorted(
        (EmployeeDaysTaken(employee_id=eid, name=names[eid], days_taken=days) for eid, days in by_employee.items()),
        key=lambda e: (-e.days_taken, e.name),
    )
    return DepartmentSummaryResponse(
        department_id=department_id,
        year=year,
        total_days_taken=sum(by_type.values()),
        by_type=dict(by_type),
        employees=employees,
    )
