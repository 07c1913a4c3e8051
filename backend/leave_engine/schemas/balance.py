# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from leave_engine.models.enums import MovementType

# ---------------------------------------------------------------------------
# Balance response schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    """Balance for one employee, leave type and accrual year."""

    employee_id: uuid.UUID
    leave_type: str
    period_year: int
    entitled: float
    used: float
    pending: float
    carry_over: float
    remaining: float
    version: int
    updated_at: datetime


class BalanceListResponse(BaseModel):
    """All balances of an employee for one accrual year."""

    items: list[BalanceResponse]
    total: int


# ---------------------------------------------------------------------------
# Movement response schemas
# ---------------------------------------------------------------------------


class MovementResponse(BaseModel):
    """A single balance movement."""

    id: uuid.UUID
    leave_type: str
    period_year: int
    movement_type: MovementType
    days: float
    request_id: uuid.UUID | None
    actor_id: uuid.UUID | None
    created_at: datetime


class MovementListResponse(BaseModel):
    """Paginated balance movements."""

    items: list[MovementResponse]
    total: int


# ---------------------------------------------------------------------------
# Enrollment
# ---------------------------------------------------------------------------


class EnrollRequest(BaseModel):
    """Request body for enrolling an employee into every leave type for a year."""

    period_year: int | None = Field(default=None, ge=2000, le=2100)
