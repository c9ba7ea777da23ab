"""Fee rules: the canonical damage table and late-fee accrual.

There is exactly one damage table.  Rentals, damage assessments, and the
services all price degradation through :func:`damage_fee`.
"""

from __future__ import annotations

from rentalctl.domain.money import Money
from rentalctl.domain.types import EquipmentCondition

# Used when a rental is returned late without a prior overdue sweep.
FALLBACK_LATE_FEE_RATE = Money(1000)

# Degradation levels → fee. One level is acceptable wear.
DAMAGE_FEE_TABLE: dict[int, Money] = {
    0: Money(0),
    1: Money(0),
    2: Money(15000),
    3: Money(30000),
    4: Money(50000),
    5: Money(50000),
}


def degradation_levels(before: EquipmentCondition, after: EquipmentCondition) -> int:
    """Ordinal distance from *before* to *after*; improvements count as 0."""
    return max(0, after.severity - before.severity)


def damage_fee(before: EquipmentCondition, after: EquipmentCondition) -> Money:
    return DAMAGE_FEE_TABLE[degradation_levels(before, after)]


def late_fee(daily_rate: Money, days_late: int) -> Money:
    if days_late <= 0:
        return Money.zero()
    return daily_rate.multiply(days_late)
