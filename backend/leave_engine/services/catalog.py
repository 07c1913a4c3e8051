from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from typing import TYPE_CHECKING

from leave_engine.config import get_settings
from leave_engine.exceptions import UnknownLeaveType
from leave_engine.models.enums import LeaveType
from leave_engine.schemas.catalog import (
    FlatAccrual,
    LeaveTypeDefinition,
    PayBreakdown,
    SplitRateAccrual,
    TenureAccrual,
    TenureTier,
)

if TYPE_CHECKING:
    from leave_engine.config import Settings

logger = logging.getLogger(__name__)


def years_of_service(hire_date: date | None, as_of: date) -> int:
    """Completed years between hire date and ``as_of``. Unknown hire date counts as zero."""
    if hire_date is None or hire_date > as_of:
        return 0
    years = as_of.year - hire_date.year
    if (as_of.month, as_of.day) < (hire_date.month, hire_date.day):
        years -= 1
    return years


class LeaveTypeCatalog:
    """Registry mapping every leave type to its definition."""

    def __init__(self, definitions: Iterable[LeaveTypeDefinition] = ()) -> None:
        self._definitions: dict[LeaveType, LeaveTypeDefinition] = {}
        for definition in definitions:
            self.register(definition)

    def register(self, definition: LeaveTypeDefinition) -> None:
        """Add or replace the entry for ``definition.id``."""
        self._definitions[definition.id] = definition

    def lookup(self, leave_type: LeaveType | str) -> LeaveTypeDefinition:
        try:
            key = LeaveType(leave_type)
        except ValueError:
            raise UnknownLeaveType(f"Unknown leave type: {leave_type}") from None
        definition = self._definitions.get(key)
        if definition is None:
            raise UnknownLeaveType(f"Leave type not configured: {key.value}")
        return definition

    def definitions(self) -> list[LeaveTypeDefinition]:
        return list(self._definitions.values())

    def requires_certificate(self, leave_type: LeaveType | str, duration: float) -> bool:
        definition = self.lookup(leave_type)
        if not definition.requires_certificate:
            return False
        threshold = definition.certificate_threshold_days
        return threshold is None or duration > threshold

    def entitlement_for(self, leave_type: LeaveType | str, hire_date: date | None, as_of: date) -> float:
        definition = self.lookup(leave_type)
        return definition.accrual.entitled_days(definition.days_per_year, years_of_service(hire_date, as_of))

    def pay_breakdown(self, leave_type: LeaveType | str, used_before: float, days: float) -> PayBreakdown:
        definition = self.lookup(leave_type)
        return definition.accrual.pay_breakdown(used_before, days, is_paid=definition.is_paid)


# ---------------------------------------------------------------------------
# Default catalog (Timor-Leste labour rules)
# ---------------------------------------------------------------------------


def build_default_catalog(settings: Settings | None = None) -> LeaveTypeCatalog:
    """Build the Timor-Leste catalog, applying configured overrides."""
    settings = settings or get_settings()

    definitions = [
        LeaveTypeDefinition(
            id=LeaveType.ANNUAL,
            name="Annual Leave",
            days_per_year=12,
            carry_over_allowed=True,
            max_carry_over_days=settings.annual_max_carry_over_days,
            accrual=TenureAccrual(
                tiers=(
                    TenureTier(min_years=3, days=15),
                    TenureTier(min_years=6, days=18),
                    TenureTier(min_years=9, days=22),
                ),
            ),
        ),
        LeaveTypeDefinition(
            id=LeaveType.SICK,
            name="Sick Leave",
            days_per_year=12,
            requires_certificate=True,
            certificate_kind="Medical Certificate",
            certificate_threshold_days=settings.sick_certificate_threshold_days,
            accrual=SplitRateAccrual(full_pay_days=6, reduced_pay_days=6, reduced_pay_rate=0.5, protected_days=30),
        ),
        LeaveTypeDefinition(
            id=LeaveType.MATERNITY,
            name="Maternity Leave",
            days_per_year=84,
            requires_certificate=True,
            certificate_kind="Medical Certificate",
        ),
        LeaveTypeDefinition(
            id=LeaveType.PATERNITY,
            name="Paternity Leave",
            days_per_year=5,
            requires_certificate=True,
            certificate_kind="Birth Certificate",
        ),
        LeaveTypeDefinition(
            id=LeaveType.BEREAVEMENT,
            name="Bereavement Leave",
            days_per_year=5,
            requires_certificate=True,
            certificate_kind="Death Certificate",
        ),
        LeaveTypeDefinition(
            id=LeaveType.MARRIAGE,
            name="Marriage Leave",
            days_per_year=5,
            requires_certificate=True,
            certificate_kind="Marriage Certificate",
        ),
        LeaveTypeDefinition(id=LeaveType.UNPAID, name="Unpaid Leave", days_per_year=30, is_paid=False),
        LeaveTypeDefinition(id=LeaveType.STUDY, name="Study Leave", days_per_year=0),
        LeaveTypeDefinition(id=LeaveType.CUSTOM, name="Custom Leave", days_per_year=0),
    ]

    catalog = LeaveTypeCatalog(definitions)
    for raw_type, days in settings.entitlement_overrides.items():
        definition = catalog.lookup(raw_type)
        update: dict[str, object] = {"days_per_year": days}
        if isinstance(definition.accrual, TenureAccrual):
            # An override is a fixed entitlement, tenure tiers no longer apply.
            update["accrual"] = FlatAccrual()
        catalog.register(definition.model_copy(update=update))
        logger.info("Entitlement override: %s = %s days", definition.id.value, days)
    return catalog


_catalog: LeaveTypeCatalog | None = None


def get_catalog() -> LeaveTypeCatalog:
    """Return the active catalog, building the default one on first call."""
    global _catalog
    if _catalog is None:
        _catalog = build_default_catalog()
    return _catalog


def set_catalog(catalog: LeaveTypeCatalog | None) -> None:
    """Override the catalog (for testing or custom policies). ``None`` restores the default."""
    global _catalog
    _catalog = catalog
