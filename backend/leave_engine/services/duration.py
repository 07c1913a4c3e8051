from __future__ import annotations

from collections.abc import Collection
from datetime import date, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leave_engine.exceptions import InvalidHalfDayRange, InvalidRange
from leave_engine.models.holiday import Holiday

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

HALF_DAY = 0.5
_WEEKEND = {5, 6}


def is_working_day(day: date, holidays: Collection[date] = ()) -> bool:
    """Monday to Friday, not a holiday."""
    return day.weekday() not in _WEEKEND and day not in holidays


def compute_duration(
    start_date: date,
    end_date: date,
    half_day: bool = False,
    holidays: Collection[date] = (),
) -> float:
    """Chargeable days between two inclusive dates.

    Weekends and the given holidays are excluded. A half day is always 0.5
    and must start and end on the same date.
    """
    if start_date > end_date:
        raise InvalidRange(f"start_date {start_date} is after end_date {end_date}")

    if half_day:
        if start_date != end_date:
            raise InvalidHalfDayRange("A half-day request must start and end on the same date")
        return HALF_DAY

    days = 0
    current = start_date
    while current <= end_date:
        if is_working_day(current, holidays):
            days += 1
        current += timedelta(days=1)
    return float(days)


async def fetch_holiday_dates(
    session: AsyncSession,
    start_date: date,
    end_date: date,
) -> set[date]:
    """Fetch holidays in the given date range."""
    result = await session.execute(
        select(col(Holiday.date)).where(
            col(Holiday.date) >= start_date,
            col(Holiday.date) <= end_date,
        )
    )
    return {row[0] for row in result.all()}
