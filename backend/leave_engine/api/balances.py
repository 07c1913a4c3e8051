# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query

from leave_engine.api.deps import AdminDep, AuthDep
from leave_engine.db import SessionDep
from leave_engine.schemas.balance import (
    BalanceListResponse,
    BalanceResponse,
    EnrollRequest,
    MovementListResponse,
)
from leave_engine.schemas.report import OnLeaveResponse
from leave_engine.services import balance as balance_service
from leave_engine.services import report as report_service

employee_balance_router = APIRouter(prefix="/employees/{employee_id}/balances", tags=["balances"])

employee_leave_router = APIRouter(prefix="/employees/{employee_id}", tags=["balances"])

balances_router = APIRouter(prefix="/balances", tags=["balances"])


@balances_router.get("", response_model=BalanceListResponse)
async def list_all_balances(
    session: SessionDep,
    auth: AdminDep,
    year: int | None = Query(default=None, ge=2000, le=2100),
    leave_type: str | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> BalanceListResponse:
    """Balances of every employee for a year (admin only)."""
    return await balance_service.list_all_balances(
        session, year or date.today().year, leave_type, offset, limit
    )


@employee_balance_router.get("", response_model=BalanceListResponse)
async def list_employee_balances(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    year: int | None = Query(default=None, ge=2000, le=2100),
) -> BalanceListResponse:
    """Get every balance of an employee for a year (current year by default)."""
    return await balance_service.list_balances(session, employee_id, year or date.today().year)


@employee_balance_router.post("/enroll", response_model=BalanceListResponse)
async def enroll_employee(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
    payload: EnrollRequest | None = None,
) -> BalanceListResponse:
    """Create the employee's balances for every leave type (admin only)."""
    return await balance_service.enroll_employee(session, auth, employee_id, payload.period_year if payload else None)


@employee_balance_router.get("/{leave_type}", response_model=BalanceResponse)
async def get_employee_balance(
    employee_id: uuid.UUID,
    leave_type: str,
    session: SessionDep,
    auth: AuthDep,
    year: int | None = Query(default=None, ge=2000, le=2100),
) -> BalanceResponse:
    """Get one balance of an employee."""
    balance = await balance_service.get_balance(session, employee_id, leave_type, year or date.today().year)
    return balance_service.build_balance_response(balance)


@employee_balance_router.get("/{leave_type}/movements", response_model=MovementListResponse)
async def list_balance_movements(
    employee_id: uuid.UUID,
    leave_type: str,
    session: SessionDep,
    auth: AuthDep,
    year: int | None = Query(default=None, ge=2000, le=2100),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> MovementListResponse:
    """Get paginated balance movements for an employee and leave type."""
    return await balance_service.list_movements(session, employee_id, leave_type, year, offset, limit)


@employee_leave_router.get("/on-leave", response_model=OnLeaveResponse)
async def is_employee_on_leave(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    day: date | None = Query(default=None, alias="date"),
) -> OnLeaveResponse:
    """Whether the employee is on approved leave on a day (today by default)."""
    day = day or date.today()
    on_leave = await report_service.is_on_leave(session, employee_id, day)
    return OnLeaveResponse(employee_id=employee_id, date=day, on_leave=on_leave)
