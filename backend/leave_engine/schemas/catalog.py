# ruff: noqa: TC001
from __future__ import annotations

from typing import Annotated, Literal, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from leave_engine.models.enums import LeaveType

# ---------------------------------------------------------------------------
# Pay breakdown
# ---------------------------------------------------------------------------


class PayBreakdown(BaseModel):
    """How the days of a request split across pay rates."""

    model_config = ConfigDict(frozen=True)

    full_pay_days: float = 0
    reduced_pay_days: float = 0
    reduced_pay_rate: float = 0
    unpaid_days: float = 0


def _overlap(start: float, end: float, lower: float, upper: float) -> float:
    return max(0.0, min(end, upper) - max(start, lower))


# ---------------------------------------------------------------------------
# Accrual policies (discriminated union on ``kind``)
# ---------------------------------------------------------------------------


class TenureTier(BaseModel):
    """Entitlement override once an employee reaches a number of service years."""

    model_config = ConfigDict(frozen=True)

    min_years: int = Field(ge=0)
    days: float = Field(ge=0)


class FlatAccrual(BaseModel):
    """Fixed yearly entitlement, every day at full pay (or unpaid for unpaid types)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["flat"] = "flat"

    def entitled_days(self, base_days: float, years_of_service: int) -> float:
        return base_days

    def pay_breakdown(self, used_before: float, days: float, *, is_paid: bool) -> PayBreakdown:
        if not is_paid:
            return PayBreakdown(unpaid_days=days)
        return PayBreakdown(full_pay_days=days)


class TenureAccrual(BaseModel):
    """Yearly entitlement that grows with completed years of service."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["tenure"] = "tenure"
    tiers: tuple[TenureTier, ...] = ()

    def entitled_days(self, base_days: float, years_of_service: int) -> float:
        entitled = base_days
        for tier in sorted(self.tiers, key=lambda t: t.min_years):
            if years_of_service >= tier.min_years:
                entitled = max(entitled, tier.days)
        return entitled

    def pay_breakdown(self, used_before: float, days: float, *, is_paid: bool) -> PayBreakdown:
        if not is_paid:
            return PayBreakdown(unpaid_days=days)
        return PayBreakdown(full_pay_days=days)


class SplitRateAccrual(BaseModel):
    """Entitlement paid in bands: full rate first, then a reduced rate.

    Days beyond both bands are unpaid but job-protected up to ``protected_days``.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["split_rate"] = "split_rate"
    full_pay_days: float = Field(default=6, ge=0)
    reduced_pay_days: float = Field(default=6, ge=0)
    reduced_pay_rate: float = Field(default=0.5, ge=0, le=1)
    protected_days: float = Field(default=30, ge=0)

    def entitled_days(self, base_days: float, years_of_service: int) -> float:
        return base_days

    def pay_breakdown(self, used_before: float, days: float, *, is_paid: bool) -> PayBreakdown:
        start, end = used_before, used_before + days
        full_cap = self.full_pay_days
        reduced_cap = self.full_pay_days + self.reduced_pay_days
        full = _overlap(start, end, 0, full_cap)
        reduced = _overlap(start, end, full_cap, reduced_cap)
        return PayBreakdown(
            full_pay_days=full,
            reduced_pay_days=reduced,
            reduced_pay_rate=self.reduced_pay_rate if reduced else 0,
            unpaid_days=days - full - reduced,
        )


AccrualPolicy = Annotated[FlatAccrual | TenureAccrual | SplitRateAccrual, Field(discriminator="kind")]


# ---------------------------------------------------------------------------
# Catalog entry
# ---------------------------------------------------------------------------


class LeaveTypeDefinition(BaseModel):
    """Immutable catalog entry for one leave category."""

    model_config = ConfigDict(frozen=True)

    id: LeaveType
    name: str
    days_per_year: float = Field(ge=0)
    is_paid: bool = True
    requires_certificate: bool = False
    certificate_kind: str | None = None
    certificate_threshold_days: float | None = Field(default=None, ge=0)
    carry_over_allowed: bool = False
    max_carry_over_days: float = Field(default=0, ge=0)
    accrual: AccrualPolicy = Field(default_factory=FlatAccrual)

    @model_validator(mode="after")
    def _validate_certificate(self) -> Self:
        if self.certificate_threshold_days is not None and not self.requires_certificate:
            msg = "certificate_threshold_days is only meaningful when requires_certificate is set"
            raise ValueError(msg)
        return self


class LeaveTypeListResponse(BaseModel):
    """All catalog entries."""

    items: list[LeaveTypeDefinition]
    total: int
