from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable
from datetime import date
from typing import TYPE_CHECKING, TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from leave_engine.config import get_settings
from leave_engine.exceptions import (
    AppError,
    BalanceConflict,
    ConflictError,
    EmployeeNotFound,
    InsufficientBalance,
    InvariantViolation,
    NoBalanceRecord,
)
from leave_engine.models.balance import LeaveBalance
from leave_engine.models.base import now_utc
from leave_engine.models.enums import AuditAction, AuditEntityType, LeaveType, MovementType
from leave_engine.models.movement import BalanceMovement
from leave_engine.schemas.balance import (
    BalanceListResponse,
    BalanceResponse,
    MovementListResponse,
    MovementResponse,
)
from leave_engine.services.audit import model_to_audit_dict, write_audit_log
from leave_engine.services.catalog import get_catalog
from leave_engine.services.employee import get_employee_service

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_engine.schemas.auth import AuthContext
    from leave_engine.services.employee import EmployeeInfo

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def build_balance_response(balance: LeaveBalance) -> BalanceResponse:
    """Map a balance model to its response schema."""
    return BalanceResponse(
        employee_id=balance.employee_id,
        leave_type=balance.leave_type,
        period_year=balance.period_year,
        entitled=balance.entitled,
        used=balance.used,
        pending=balance.pending,
        carry_over=balance.carry_over,
        remaining=balance.remaining,
        version=balance.version,
        updated_at=balance.updated_at,
    )


def _build_movement_response(movement: BalanceMovement) -> MovementResponse:
    return MovementResponse(
        id=movement.id,
        leave_type=movement.leave_type,
        period_year=movement.period_year,
        movement_type=MovementType(movement.movement_type),
        days=movement.days,
        request_id=movement.request_id,
        actor_id=movement.actor_id,
        created_at=movement.created_at,
    )


def _normalize_type(leave_type: LeaveType | str) -> str:
    return get_catalog().lookup(leave_type).id.value


async def _find_balance(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: str,
    period_year: int,
) -> LeaveBalance | None:
    result = await session.execute(
        select(LeaveBalance).where(
            col(LeaveBalance.employee_id) == employee_id,
            col(LeaveBalance.leave_type) == leave_type,
            col(LeaveBalance.period_year) == period_year,
        )
    )
    return result.scalar_one_or_none()


def _add_movement(
    session: AsyncSession,
    balance: LeaveBalance,
    movement_type: MovementType,
    days: float,
    request_id: uuid.UUID | None = None,
    actor_id: uuid.UUID | None = None,
) -> BalanceMovement:
    movement = BalanceMovement(
        balance_id=balance.id,
        employee_id=balance.employee_id,
        leave_type=balance.leave_type,
        period_year=balance.period_year,
        movement_type=movement_type.value,
        days=days,
        request_id=request_id,
        actor_id=actor_id,
    )
    session.add(movement)
    return movement


def _check_invariants(balance: LeaveBalance, used: float, pending: float) -> None:
    remaining = balance.entitled + balance.carry_over - used - pending
    if used < 0 or pending < 0 or remaining < 0:
        logger.error(
            "Balance %s would break its invariants: used=%s pending=%s remaining=%s",
            balance.id,
            used,
            pending,
            remaining,
        )
        raise InvariantViolation(f"Balance {balance.id} would become inconsistent")


async def _compare_and_swap(
    session: AsyncSession,
    balance: LeaveBalance,
    *,
    used: float,
    pending: float,
) -> None:
    """Write new counters only if nobody changed the row since it was read."""
    _check_invariants(balance, used, pending)
    result = await session.execute(
        update(LeaveBalance)
        .where(
            col(LeaveBalance.id) == balance.id,
            col(LeaveBalance.version) == balance.version,
        )
        .values(used=used, pending=pending, version=balance.version + 1, updated_at=now_utc())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise BalanceConflict(f"Balance {balance.id} changed concurrently (version {balance.version})")
    await session.refresh(balance)


# ---------------------------------------------------------------------------
# Conflict retries
# ---------------------------------------------------------------------------


async def run_with_conflict_retries(session: AsyncSession, operation: Callable[[], Awaitable[T]]) -> T:
    """Run a unit of work, rolling back on failure and retrying balance conflicts.

    ``operation`` must re-read everything it mutates, since each attempt
    starts from a rolled-back session.
    """
    attempts = get_settings().balance_conflict_retries
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except BalanceConflict as exc:
            await session.rollback()
            logger.warning("Balance conflict (attempt %d/%d): %s", attempt, attempts, exc.message)
        except AppError:
            await session.rollback()
            raise
    raise ConflictError(f"Balance kept changing concurrently after {attempts} attempts")


# ---------------------------------------------------------------------------
# Lazy initialisation
# ---------------------------------------------------------------------------


async def get_or_create_balance(
    session: AsyncSession,
    employee: EmployeeInfo,
    leave_type: LeaveType | str,
    period_year: int,
    *,
    actor_id: uuid.UUID | None = None,
) -> LeaveBalance:
    """Return the balance row, creating it from the catalog on first reference.

    Entitlement comes from the type's accrual policy; carry-over is the
    prior year's remaining days, capped, when the type allows it. The new row
    is flushed, not committed. A unique-constraint race raises
    ``BalanceConflict`` so the caller retries.
    """
    catalog = get_catalog()
    definition = catalog.lookup(leave_type)
    type_value = definition.id.value

    existing = await _find_balance(session, employee.id, type_value, period_year)
    if existing is not None:
        return existing

    entitled = catalog.entitlement_for(definition.id, employee.hire_date, date(period_year, 12, 31))
    carry_over = 0.0
    if definition.carry_over_allowed:
        prior = await _find_balance(session, employee.id, type_value, period_year - 1)
        if prior is not None:
            carry_over = min(max(prior.remaining, 0.0), definition.max_carry_over_days)

    balance = LeaveBalance(
        employee_id=employee.id,
        leave_type=type_value,
        period_year=period_year,
        entitled=entitled,
        carry_over=carry_over,
    )
    session.add(balance)
    try:
        await session.flush()
    except IntegrityError:
        raise BalanceConflict(
            f"Balance for {employee.id}/{type_value}/{period_year} was created concurrently"
        ) from None

    _add_movement(session, balance, MovementType.ENTITLEMENT, entitled, actor_id=actor_id)
    if carry_over > 0:
        _add_movement(session, balance, MovementType.CARRY_OVER, carry_over, actor_id=actor_id)

    if actor_id is not None:
        await write_audit_log(
            session,
            actor_id=actor_id,
            entity_type=AuditEntityType.BALANCE,
            entity_id=balance.id,
            action=AuditAction.CREATE,
            after_json=model_to_audit_dict(balance),
        )

    await session.flush()
    logger.info(
        "Initialised %s balance for employee %s, year %d: entitled=%s carry_over=%s",
        type_value,
        employee.id,
        period_year,
        entitled,
        carry_over,
    )
    return balance


async def enroll_employee(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
    period_year: int | None = None,
) -> BalanceListResponse:
    """Create every catalog balance for an employee and year. Idempotent."""
    employee = await get_employee_service().get_employee(employee_id)
    if employee is None:
        raise EmployeeNotFound(f"Employee {employee_id} not found")
    year = period_year or date.today().year

    async def _enroll() -> list[LeaveBalance]:
        balances = [
            await get_or_create_balance(session, employee, definition.id, year, actor_id=auth.user_id)
            for definition in get_catalog().definitions()
        ]
        await session.commit()
        return balances

    balances = await run_with_conflict_retries(session, _enroll)
    return BalanceListResponse(items=[build_balance_response(b) for b in balances], total=len(balances))


# ---------------------------------------------------------------------------
# Mutations (check-then-act, version checked)
# ---------------------------------------------------------------------------


async def reserve(
    session: AsyncSession,
    balance: LeaveBalance,
    days: float,
    *,
    request_id: uuid.UUID | None = None,
    actor_id: uuid.UUID | None = None,
) -> LeaveBalance:
    """Hold ``days`` against the balance: ``pending += days``."""
    if days <= 0:
        raise InvariantViolation(f"Cannot reserve {days} days")
    if balance.remaining < days:
        raise InsufficientBalance(
            f"Insufficient {balance.leave_type} balance: {balance.remaining} days remaining, {days} requested"
        )
    await _compare_and_swap(session, balance, used=balance.used, pending=balance.pending + days)
    _add_movement(session, balance, MovementType.RESERVE, days, request_id, actor_id)
    await session.flush()
    return balance


async def commit(
    session: AsyncSession,
    balance: LeaveBalance,
    days: float,
    *,
    request_id: uuid.UUID | None = None,
    actor_id: uuid.UUID | None = None,
) -> LeaveBalance:
    """Turn held days into used days: ``pending -= days; used += days``."""
    if balance.pending < days:
        logger.error("Commit of %s days exceeds pending %s on balance %s", days, balance.pending, balance.id)
        raise InvariantViolation(f"Cannot commit {days} days, only {balance.pending} pending")
    await _compare_and_swap(session, balance, used=balance.used + days, pending=balance.pending - days)
    _add_movement(session, balance, MovementType.COMMIT, days, request_id, actor_id)
    await session.flush()
    return balance


async def release(
    session: AsyncSession,
    balance: LeaveBalance,
    days: float,
    *,
    request_id: uuid.UUID | None = None,
    actor_id: uuid.UUID | None = None,
) -> LeaveBalance:
    """Return held days to the balance: ``pending -= days``."""
    if balance.pending < days:
        logger.error("Release of %s days exceeds pending %s on balance %s", days, balance.pending, balance.id)
        raise InvariantViolation(f"Cannot release {days} days, only {balance.pending} pending")
    await _compare_and_swap(session, balance, used=balance.used, pending=balance.pending - days)
    _add_movement(session, balance, MovementType.RELEASE, days, request_id, actor_id)
    await session.flush()
    return balance


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_balance(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: LeaveType | str,
    period_year: int,
) -> LeaveBalance:
    """Read a balance row. Never creates one."""
    type_value = _normalize_type(leave_type)
    balance = await _find_balance(session, employee_id, type_value, period_year)
    if balance is None:
        raise NoBalanceRecord(f"No {type_value} balance for employee {employee_id} in {period_year}")
    return balance


async def list_balances(
    session: AsyncSession,
    employee_id: uuid.UUID,
    period_year: int,
) -> BalanceListResponse:
    """All existing balances of an employee for a year."""
    result = await session.execute(
        select(LeaveBalance)
        .where(
            col(LeaveBalance.employee_id) == employee_id,
            col(LeaveBalance.period_year) == period_year,
        )
        .order_by(col(LeaveBalance.leave_type))
    )
    balances = list(result.scalars().all())
    return BalanceListResponse(items=[build_balance_response(b) for b in balances], total=len(balances))


async def list_all_balances(
    session: AsyncSession,
    period_year: int,
    leave_type: LeaveType | str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> BalanceListResponse:
    """Balances of every employee for a year, grouped by employee then type."""
    filters = [col(LeaveBalance.period_year) == period_year]
    if leave_type is not None:
        filters.append(col(LeaveBalance.leave_type) == _normalize_type(leave_type))

    count_result = await session.execute(select(func.count()).select_from(LeaveBalance).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(LeaveBalance)
        .where(*filters)
        .order_by(col(LeaveBalance.employee_id), col(LeaveBalance.leave_type))
        .offset(offset)
        .limit(limit)
    )
    return BalanceListResponse(
        items=[build_balance_response(b) for b in result.scalars().all()],
        total=total,
    )


async def list_movements(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: LeaveType | str,
    period_year: int | None = None,
    offset: int = 0,
    limit: int = 50,
) -> MovementListResponse:
    """Paginated movements for an employee and leave type, newest first."""
    filters = [
        col(BalanceMovement.employee_id) == employee_id,
        col(BalanceMovement.leave_type) == _normalize_type(leave_type),
    ]
    if period_year is not None:
        filters.append(col(BalanceMovement.period_year) == period_year)

    count_result = await session.execute(select(func.count()).select_from(BalanceMovement).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(BalanceMovement)
        .where(*filters)
        .order_by(col(BalanceMovement.created_at).desc())
        .offset(offset)
        .limit(limit)
    )
    return MovementListResponse(
        items=[_build_movement_response(m) for m in result.scalars().all()],
        total=total,
    )
