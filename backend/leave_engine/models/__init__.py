from sqlmodel import SQLModel

from leave_engine.models.audit import AuditLog
from leave_engine.models.balance import LeaveBalance
from leave_engine.models.base import TimestampMixin, UUIDBase
from leave_engine.models.enums import (
    AuditAction,
    AuditEntityType,
    HalfDayPeriod,
    LeaveStatus,
    LeaveType,
    MovementType,
)
from leave_engine.models.holiday import Holiday
from leave_engine.models.movement import BalanceMovement
from leave_engine.models.request import LeaveRequest

__all__ = [
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "BalanceMovement",
    "HalfDayPeriod",
    "Holiday",
    "LeaveBalance",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveType",
    "MovementType",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
]
