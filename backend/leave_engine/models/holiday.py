# ruff: noqa: TC003
from __future__ import annotations

import datetime

import sqlalchemy as sa
from sqlmodel import Field

from leave_engine.models.base import UUIDBase


class Holiday(UUIDBase, table=True):
    """A public or company holiday excluded from working-day durations."""

    __tablename__ = "holiday"
    __table_args__ = (sa.UniqueConstraint("date", name="uq_holiday_date"),)

    date: datetime.date = Field(index=True)
    name: str = Field(max_length=255)
