"""Conflict detection for equipment bookings.

A requested window ``[start, end)`` on one equipment unit is bookable when:

1. no live reservation (PENDING/CONFIRMED) for the unit overlaps it,
2. no live rental (ACTIVE/OVERDUE) for the unit overlaps it,
3. the unit itself is available and in a rentable condition.

Callers evaluate all three against one snapshot taken inside a
per-equipment transaction, which makes check-then-write linearizable.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from rentalctl.domain.dates import DateRange
from rentalctl.domain.equipment import Equipment
from rentalctl.domain.errors import (
    EquipmentConditionUnacceptableError,
    EquipmentNotAvailableError,
    ScheduleConflictError,
)
from rentalctl.domain.rental import Rental
from rentalctl.domain.reservation import Reservation


@dataclass(frozen=True)
class Availability:
    """Outcome of a conflict check."""

    equipment_id: str
    period: DateRange
    reservation_conflicts: list[str] = field(default_factory=list)
    rental_conflicts: list[str] = field(default_factory=list)
    equipment_problem: str | None = None

    @property
    def conflicts(self) -> list[str]:
        return [*self.reservation_conflicts, *self.rental_conflicts]

    @property
    def is_available(self) -> bool:
        return not self.conflicts and self.equipment_problem is None


def find_conflicts(
    equipment: Equipment,
    period: DateRange,
    reservations: Iterable[Reservation],
    rentals: Iterable[Rental],
    *,
    exclude_reservation_id: str | None = None,
) -> Availability:
    """Evaluate *period* on *equipment* against sibling bookings."""
    reservation_conflicts = [
        r.id
        for r in reservations
        if r.equipment_id == equipment.id
        and r.id != exclude_reservation_id
        and r.is_live
        and r.overlaps(period)
    ]
    rental_conflicts = [
        r.id
        for r in rentals
        if r.equipment_id == equipment.id and r.is_live and r.period.overlaps(period)
    ]
    problem: str | None = None
    if not equipment.is_rentable:
        problem = f"condition {equipment.condition} is not rentable"
    elif not equipment.is_available:
        problem = "not available"
    return Availability(
        equipment_id=equipment.id,
        period=period,
        reservation_conflicts=reservation_conflicts,
        rental_conflicts=rental_conflicts,
        equipment_problem=problem,
    )


def ensure_bookable(
    equipment: Equipment,
    period: DateRange,
    reservations: Iterable[Reservation],
    rentals: Iterable[Rental],
    *,
    exclude_reservation_id: str | None = None,
) -> None:
    """Raise the matching conflict error unless *period* is bookable."""
    availability = find_conflicts(
        equipment,
        period,
        reservations,
        rentals,
        exclude_reservation_id=exclude_reservation_id,
    )
    if not equipment.is_rentable:
        raise EquipmentConditionUnacceptableError(equipment.id, equipment.condition)
    if availability.conflicts:
        raise ScheduleConflictError(equipment.id, availability.conflicts)
    if not equipment.is_available:
        raise EquipmentNotAvailableError(equipment.id)
