from __future__ import annotations

import enum


class LeaveType(enum.StrEnum):
    """Category of authorized absence."""

    ANNUAL = "annual"
    SICK = "sick"
    MATERNITY = "maternity"
    PATERNITY = "paternity"
    BEREAVEMENT = "bereavement"
    UNPAID = "unpaid"
    MARRIAGE = "marriage"
    STUDY = "study"
    CUSTOM = "custom"


class LeaveStatus(enum.StrEnum):
    """State machine for leave requests."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not LeaveStatus.PENDING

    def can_transition_to(self, target: LeaveStatus) -> bool:
        """Only a pending request may move, and only to a terminal state."""
        return target in _TRANSITIONS.get(self, frozenset())


_TRANSITIONS: dict[LeaveStatus, frozenset[LeaveStatus]] = {
    LeaveStatus.PENDING: frozenset({LeaveStatus.APPROVED, LeaveStatus.REJECTED, LeaveStatus.CANCELLED}),
}


class HalfDayPeriod(enum.StrEnum):
    """Which half of the working day a half-day request covers."""

    MORNING = "morning"
    AFTERNOON = "afternoon"


class MovementType(enum.StrEnum):
    """Kind of balance change recorded in the movement ledger."""

    ENTITLEMENT = "ENTITLEMENT"
    CARRY_OVER = "CARRY_OVER"
    RESERVE = "RESERVE"
    COMMIT = "COMMIT"
    RELEASE = "RELEASE"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    REQUEST = "REQUEST"
    BALANCE = "BALANCE"
    HOLIDAY = "HOLIDAY"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    DELETE = "DELETE"
    SUBMIT = "SUBMIT"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CANCEL = "CANCEL"
