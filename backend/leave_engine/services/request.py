# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select, update
from sqlmodel import col

from leave_engine.config import get_settings
from leave_engine.exceptions import (
    CertificateRequired,
    EmployeeNotFound,
    Forbidden,
    InvalidRange,
    InvalidTransition,
    InvariantViolation,
    NoBalanceRecord,
    NotFound,
    ValidationError,
)
from leave_engine.models.base import now_utc
from leave_engine.models.enums import AuditAction, AuditEntityType, HalfDayPeriod, LeaveStatus
from leave_engine.models.request import LeaveRequest
from leave_engine.schemas.request import RequestListResponse, RequestResponse
from leave_engine.services import balance as balance_store
from leave_engine.services.audit import model_to_audit_dict, write_audit_log
from leave_engine.services.catalog import get_catalog
from leave_engine.services.department import get_department_service
from leave_engine.services.duration import compute_duration, fetch_holiday_dates, is_working_day
from leave_engine.services.employee import get_employee_service
from leave_engine.services.locks import balance_locks, request_locks

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_engine.models.balance import LeaveBalance
    from leave_engine.schemas.auth import AuthContext
    from leave_engine.schemas.request import DecisionPayload, RejectPayload, SubmitRequestPayload

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def build_request_response(leave_request: LeaveRequest) -> RequestResponse:
    """Map a request model to its response schema."""
    return RequestResponse(
        id=leave_request.id,
        employee_id=leave_request.employee_id,
        employee_name=leave_request.employee_name,
        department=leave_request.department,
        department_id=leave_request.department_id,
        leave_type=leave_request.leave_type,
        start_date=leave_request.start_date,
        end_date=leave_request.end_date,
        half_day=leave_request.half_day,
        half_day_period=HalfDayPeriod(leave_request.half_day_period) if leave_request.half_day_period else None,
        duration=leave_request.duration,
        period_year=leave_request.period_year,
        reason=leave_request.reason,
        has_certificate=leave_request.has_certificate,
        certificate_kind=leave_request.certificate_kind,
        certificate_missing=leave_request.certificate_missing,
        status=LeaveStatus(leave_request.status),
        decided_at=leave_request.decided_at,
        decided_by=leave_request.decided_by,
        decision_note=leave_request.decision_note,
        rejection_reason=leave_request.rejection_reason,
        pay_breakdown=leave_request.pay_breakdown_json,
        created_at=leave_request.created_at,
    )


async def _get_request_or_404(session: AsyncSession, request_id: uuid.UUID) -> LeaveRequest:
    result = await session.execute(select(LeaveRequest).where(col(LeaveRequest.id) == request_id))
    leave_request = result.scalar_one_or_none()
    if leave_request is None:
        raise NotFound(f"Leave request {request_id} not found")
    return leave_request


def _ensure_transition(leave_request: LeaveRequest, target: LeaveStatus) -> None:
    current = LeaveStatus(leave_request.status)
    if not current.can_transition_to(target):
        raise InvalidTransition(f"Cannot move request {leave_request.id} from {current.value} to {target.value}")


async def _held_balance(session: AsyncSession, leave_request: LeaveRequest) -> LeaveBalance:
    """The balance a pending request was reserved against. It must exist."""
    try:
        return await balance_store.get_balance(
            session, leave_request.employee_id, leave_request.leave_type, leave_request.period_year
        )
    except NoBalanceRecord:
        logger.error("Pending request %s has no balance row", leave_request.id)
        raise InvariantViolation(f"Pending request {leave_request.id} has no balance row") from None


async def _transition(
    session: AsyncSession,
    leave_request: LeaveRequest,
    target: LeaveStatus,
    **values: Any,
) -> None:
    """Move a pending request to ``target`` with a status compare-and-swap."""
    result = await session.execute(
        update(LeaveRequest)
        .where(
            col(LeaveRequest.id) == leave_request.id,
            col(LeaveRequest.status) == LeaveStatus.PENDING.value,
        )
        .values(status=target.value, **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise InvalidTransition(f"Request {leave_request.id} was decided concurrently")
    await session.refresh(leave_request)


# ---------------------------------------------------------------------------
# Submit
# ---------------------------------------------------------------------------


async def submit_request(
    session: AsyncSession,
    auth: AuthContext,
    payload: SubmitRequestPayload,
) -> RequestResponse:
    """Submit a leave request, holding its duration against the balance.

    Flow:
    1. Validate fields and date range
    2. Resolve employee, department and leave type
    3. Compute duration (weekends and holidays excluded)
    4. Enforce the certificate rule
    5. Under the balance lock: lazily create the balance, reserve, persist
       the request, write movement and audit, commit
    """
    reason = payload.reason.strip()
    if not reason:
        raise ValidationError("reason is required")
    if payload.half_day_period is not None and not payload.half_day:
        raise ValidationError("half_day_period is only allowed for half-day requests")
    if payload.start_date > payload.end_date:
        raise InvalidRange(f"start_date {payload.start_date} is after end_date {payload.end_date}")

    employee = await get_employee_service().get_employee(payload.employee_id)
    if employee is None:
        raise EmployeeNotFound(f"Employee {payload.employee_id} not found")

    catalog = get_catalog()
    definition = catalog.lookup(payload.leave_type)
    department_id = await get_department_service().find_department_id(employee.department_name)
    settings = get_settings()

    async with balance_locks.hold((employee.id, definition.id.value)):
        holidays: set[date] = set()
        if settings.exclude_holidays:
            holidays = await fetch_holiday_dates(session, payload.start_date, payload.end_date)

        duration = compute_duration(payload.start_date, payload.end_date, payload.half_day, holidays)
        if payload.half_day and not is_working_day(payload.start_date, holidays):
            raise ValidationError(f"{payload.start_date} is not a working day")
        if duration == 0:
            raise ValidationError("The requested range contains no working days")

        certificate_missing = False
        if catalog.requires_certificate(definition.id, duration) and not payload.has_certificate:
            if settings.certificate_enforcement == "block":
                raise CertificateRequired(
                    f"{definition.name} of {duration:g} days requires a {definition.certificate_kind}"
                )
            certificate_missing = True

        async def _submit() -> LeaveRequest:
            balance = await balance_store.get_or_create_balance(
                session, employee, definition.id, payload.start_date.year, actor_id=auth.user_id
            )
            leave_request = LeaveRequest(
                employee_id=employee.id,
                employee_name=employee.full_name,
                department=employee.department_name,
                department_id=department_id,
                leave_type=definition.id.value,
                start_date=payload.start_date,
                end_date=payload.end_date,
                half_day=payload.half_day,
                half_day_period=(payload.half_day_period or HalfDayPeriod.MORNING).value if payload.half_day else None,
                duration=duration,
                period_year=payload.start_date.year,
                reason=reason,
                has_certificate=payload.has_certificate,
                certificate_kind=definition.certificate_kind,
                certificate_missing=certificate_missing,
                status=LeaveStatus.PENDING.value,
            )
            await balance_store.reserve(
                session, balance, duration, request_id=leave_request.id, actor_id=auth.user_id
            )
            session.add(leave_request)
            await session.flush()

            await write_audit_log(
                session,
                actor_id=auth.user_id,
                entity_type=AuditEntityType.REQUEST,
                entity_id=leave_request.id,
                action=AuditAction.SUBMIT,
                after_json=model_to_audit_dict(leave_request),
            )

            await session.commit()
            await session.refresh(leave_request)
            return leave_request

        leave_request = await balance_store.run_with_conflict_retries(session, _submit)

    logger.info(
        "Request %s submitted: %s %s days for employee %s",
        leave_request.id,
        leave_request.leave_type,
        leave_request.duration,
        leave_request.employee_id,
    )
    return build_request_response(leave_request)


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


async def _decide(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    target: LeaveStatus,
    audit_action: AuditAction,
    *,
    owner_or_admin: bool = False,
    **values: Any,
) -> LeaveRequest:
    """Shared flow for approve, reject and cancel.

    The status compare-and-swap and the balance change land in one
    transaction; approval commits the held days, everything else releases them.
    """
    async with request_locks.hold(request_id):
        leave_request = await _get_request_or_404(session, request_id)
        if owner_or_admin and auth.user_id != leave_request.employee_id and not auth.is_admin:
            raise Forbidden("Not authorized to cancel this request")
        _ensure_transition(leave_request, target)

        async with balance_locks.hold((leave_request.employee_id, leave_request.leave_type)):

            async def _apply() -> LeaveRequest:
                current = await _get_request_or_404(session, request_id)
                _ensure_transition(current, target)
                before = model_to_audit_dict(current)
                balance = await _held_balance(session, current)

                extra = dict(values)
                if target is LeaveStatus.APPROVED:
                    breakdown = get_catalog().pay_breakdown(current.leave_type, balance.used, current.duration)
                    extra["pay_breakdown_json"] = breakdown.model_dump()

                await _transition(
                    session, current, target, decided_at=now_utc(), decided_by=auth.user_id, **extra
                )
                if target is LeaveStatus.APPROVED:
                    await balance_store.commit(
                        session, balance, current.duration, request_id=current.id, actor_id=auth.user_id
                    )
                else:
                    await balance_store.release(
                        session, balance, current.duration, request_id=current.id, actor_id=auth.user_id
                    )

                await write_audit_log(
                    session,
                    actor_id=auth.user_id,
                    entity_type=AuditEntityType.REQUEST,
                    entity_id=current.id,
                    action=audit_action,
                    before_json=before,
                    after_json=model_to_audit_dict(current),
                )

                await session.commit()
                await session.refresh(current)
                return current

            decided = await balance_store.run_with_conflict_retries(session, _apply)

    logger.info("Request %s %s by %s", decided.id, target.value, auth.user_id)
    return decided


async def approve_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    """Approve a pending request: its held days become used days."""
    if not auth.is_admin:
        raise Forbidden("Only approvers can approve leave requests")
    leave_request = await _decide(
        session,
        auth,
        request_id,
        LeaveStatus.APPROVED,
        AuditAction.APPROVE,
        decision_note=payload.note if payload else None,
    )
    return build_request_response(leave_request)


async def reject_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: RejectPayload | None = None,
) -> RequestResponse:
    """Reject a pending request with a reason, releasing its held days."""
    if not auth.is_admin:
        raise Forbidden("Only approvers can reject leave requests")
    await _get_request_or_404(session, request_id)
    reason = (payload.reason or "").strip() if payload else ""
    if not reason:
        raise ValidationError("A rejection reason is required")
    leave_request = await _decide(
        session,
        auth,
        request_id,
        LeaveStatus.REJECTED,
        AuditAction.REJECT,
        rejection_reason=reason,
        decision_note=payload.note if payload else None,
    )
    return build_request_response(leave_request)


async def cancel_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
) -> RequestResponse:
    """Cancel a pending request, releasing its held days.

    The employee who owns the request or an admin can cancel.
    """
    leave_request = await _decide(
        session, auth, request_id, LeaveStatus.CANCELLED, AuditAction.CANCEL, owner_or_admin=True
    )
    return build_request_response(leave_request)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_request(session: AsyncSession, request_id: uuid.UUID) -> RequestResponse:
    """Get a single request by ID."""
    leave_request = await _get_request_or_404(session, request_id)
    return build_request_response(leave_request)


async def list_requests(
    session: AsyncSession,
    status_filter: str | None = None,
    employee_id: uuid.UUID | None = None,
    leave_type: str | None = None,
    department_id: uuid.UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    offset: int = 0,
    limit: int = 50,
) -> RequestListResponse:
    """List requests with optional filters, newest first.

    ``start_date``/``end_date`` keep requests overlapping the window.
    """
    filters = []
    if status_filter is not None:
        filters.append(col(LeaveRequest.status) == status_filter)
    if employee_id is not None:
        filters.append(col(LeaveRequest.employee_id) == employee_id)
    if leave_type is not None:
        filters.append(col(LeaveRequest.leave_type) == get_catalog().lookup(leave_type).id.value)
    if department_id is not None:
        filters.append(col(LeaveRequest.department_id) == department_id)
    if start_date is not None:
        filters.append(col(LeaveRequest.end_date) >= start_date)
    if end_date is not None:
        filters.append(col(LeaveRequest.start_date) <= end_date)

    count_result = await session.execute(select(func.count()).select_from(LeaveRequest).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(LeaveRequest)
        .where(*filters)
        .order_by(col(LeaveRequest.created_at).desc())
        .offset(offset)
        .limit(limit)
    )
    return RequestListResponse(
        items=[build_request_response(r) for r in result.scalars().all()],
        total=total,
    )
