"""Core enumerations: equipment condition and membership tiers."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum


class EquipmentCondition(StrEnum):
    """Physical condition, ordered best to worst."""

    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    FAIR = "FAIR"
    POOR = "POOR"
    DAMAGED = "DAMAGED"
    UNDER_REPAIR = "UNDER_REPAIR"

    @property
    def severity(self) -> int:
        """Index in the severity ordering (0 = EXCELLENT)."""
        return CONDITION_ORDER.index(self)

    @property
    def is_rentable(self) -> bool:
        return self in RENTABLE_CONDITIONS

    @property
    def needs_repair(self) -> bool:
        return self in (EquipmentCondition.DAMAGED, EquipmentCondition.UNDER_REPAIR)


CONDITION_ORDER: tuple[EquipmentCondition, ...] = tuple(EquipmentCondition)

RENTABLE_CONDITIONS: frozenset[EquipmentCondition] = frozenset(
    {EquipmentCondition.EXCELLENT, EquipmentCondition.GOOD, EquipmentCondition.FAIR}
)


class MembershipTier(StrEnum):
    """Membership tiers. Limits live in :data:`TIER_POLICIES`."""

    BASIC = "BASIC"
    SILVER = "SILVER"
    GOLD = "GOLD"
    PLATINUM = "PLATINUM"

    @property
    def policy(self) -> TierPolicy:
        return TIER_POLICIES[self]


@dataclass(frozen=True)
class TierPolicy:
    """Limits and benefits granted by a membership tier."""

    discount_percent: Decimal
    max_concurrent_rentals: int
    max_rental_days: int
    early_reservations: bool


TIER_POLICIES: dict[MembershipTier, TierPolicy] = {
    MembershipTier.BASIC: TierPolicy(Decimal(0), 2, 7, False),
    MembershipTier.SILVER: TierPolicy(Decimal(5), 3, 14, False),
    MembershipTier.GOLD: TierPolicy(Decimal(10), 5, 30, True),
    MembershipTier.PLATINUM: TierPolicy(Decimal(15), 10, 60, True),
}
