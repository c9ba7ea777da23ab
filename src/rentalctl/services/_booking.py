"""Checks shared by every use case that puts equipment in a member's hands.

Run inside a per-equipment write transaction so the snapshot they see is
the one the following write is based on.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from rentalctl.domain.dates import DateRange
from rentalctl.domain.errors import (
    InvalidInputError,
    MemberHasOverdueRentalsError,
    MemberInactiveError,
    RentalDurationExceededError,
    RentalLimitExceededError,
)
from rentalctl.domain.lifecycle import RentalStatus
from rentalctl.domain.rental import Rental
from rentalctl.domain.scheduling import Availability, ensure_bookable, find_conflicts

if TYPE_CHECKING:
    from rentalctl.domain.equipment import Equipment
    from rentalctl.domain.member import Member
    from rentalctl.domain.money import Money
    from rentalctl.infrastructure.store import UnitOfWork


def build_period(
    start: datetime,
    end: datetime | None = None,
    days: int | None = None,
) -> DateRange:
    """``[start, end)`` or ``days`` whole days from *start*; exactly one of the two."""
    if (end is None) == (days is None):
        raise InvalidInputError("Give either an end date or a number of days")
    if end is not None:
        return DateRange(start, end)
    assert days is not None
    if days <= 0:
        raise InvalidInputError("Rental days must be greater than zero", days=days)
    return DateRange.of_days(start, days)


def check_eligibility(uow: UnitOfWork, member: Member, period: DateRange, now: datetime) -> None:
    """Member may take on one more rental of *period*'s length."""
    _check_standing(uow, member, now)
    if not member.can_rent():
        raise RentalLimitExceededError(member.id, member.max_concurrent_rentals)
    check_duration(member, period.days)


def check_reservation_eligibility(
    uow: UnitOfWork, member: Member, period: DateRange, now: datetime
) -> None:
    """Like :func:`check_eligibility`, minus the concurrent-rental cap."""
    _check_standing(uow, member, now)
    check_duration(member, period.days)


def _check_standing(uow: UnitOfWork, member: Member, now: datetime) -> None:
    if not member.is_active:
        raise MemberInactiveError(member.id)
    overdue = [
        r
        for r in uow.rentals.find_live_by_member(member.id)
        if r.status is RentalStatus.OVERDUE or r.is_overdue(now)
    ]
    if overdue:
        raise MemberHasOverdueRentalsError(member.id, len(overdue))


def check_duration(member: Member, days: int) -> None:
    if days > member.max_rental_days:
        raise RentalDurationExceededError(member.id, days, member.max_rental_days, str(member.tier))


def availability(
    uow: UnitOfWork,
    equipment: Equipment,
    period: DateRange,
    *,
    exclude_reservation_id: str | None = None,
) -> Availability:
    return find_conflicts(
        equipment,
        period,
        uow.reservations.find_conflicting(equipment.id, period, exclude_reservation_id),
        uow.rentals.find_overlapping(equipment.id, period),
        exclude_reservation_id=exclude_reservation_id,
    )


def check_bookable(
    uow: UnitOfWork,
    equipment: Equipment,
    period: DateRange,
    *,
    exclude_reservation_id: str | None = None,
) -> None:
    ensure_bookable(
        equipment,
        period,
        uow.reservations.find_conflicting(equipment.id, period, exclude_reservation_id),
        uow.rentals.find_overlapping(equipment.id, period),
        exclude_reservation_id=exclude_reservation_id,
    )


def quote(member: Member, equipment: Equipment, days: int) -> Money:
    """Discounted base cost of *days* on *equipment* for *member*."""
    return member.apply_discount(equipment.calculate_rental_cost(days))


def open_rental(
    uow: UnitOfWork,
    *,
    rental_id: str,
    member: Member,
    equipment: Equipment,
    period: DateRange,
    cost: Money,
    transaction_id: str,
    now: datetime,
) -> tuple[Rental, Equipment, Member]:
    """Create the rental and persist all three new snapshots."""
    rental = Rental.create(
        equipment_id=equipment.id,
        member_id=member.id,
        period=period,
        base_cost=cost,
        condition_at_start=equipment.condition,
        now=now,
        transaction_id=transaction_id,
        rental_id=rental_id,
    )
    equipment = equipment.mark_as_rented(rental.id)
    member = member.increment_active_rentals()
    uow.rentals.save(rental)
    uow.equipment.save(equipment)
    uow.members.save(member)
    return rental, equipment, member
