"""Rental persistence."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, select

from rentalctl.domain.dates import DateRange, from_iso, to_iso
from rentalctl.domain.lifecycle import LIVE_RENTAL_STATUSES, RentalStatus
from rentalctl.domain.money import Money
from rentalctl.domain.rental import Rental
from rentalctl.domain.types import EquipmentCondition
from rentalctl.infrastructure.database.schema import rentals
from rentalctl.infrastructure.repositories._base import SqlRepository, dt_or_none, iso_or_none

_LIVE = [str(s) for s in LIVE_RENTAL_STATUSES]


def _to_entity(row: Any) -> Rental:
    return Rental(
        id=row.id,
        equipment_id=row.equipment_id,
        member_id=row.member_id,
        period=DateRange(from_iso(row.start_at), from_iso(row.end_at)),
        status=RentalStatus(row.status),
        base_cost=Money(row.base_cost_cents),
        total_cost=Money(row.total_cost_cents),
        late_fee=Money(row.late_fee_cents),
        damage_fee=Money(row.damage_fee_cents),
        condition_at_start=EquipmentCondition(row.condition_at_start),
        condition_at_return=(
            EquipmentCondition(row.condition_at_return) if row.condition_at_return else None
        ),
        created_at=from_iso(row.created_at),
        returned_at=dt_or_none(row.returned_at),
        cancelled_at=dt_or_none(row.cancelled_at),
        transaction_id=row.transaction_id,
    )


class SqlRentalRepository(SqlRepository):
    table = rentals

    def _select(self, *criteria: Any) -> list[Rental]:
        stmt = select(rentals).where(*criteria).order_by(rentals.c.start_at, rentals.c.id)
        return [_to_entity(r) for r in self._conn.execute(stmt).fetchall()]

    def find_by_id(self, rental_id: str) -> Rental | None:
        row = self._fetch_one(rental_id)
        return _to_entity(row) if row is not None else None

    def find_all(self) -> list[Rental]:
        return self._select()

    def find_by_member(self, member_id: str) -> list[Rental]:
        return self._select(rentals.c.member_id == member_id)

    def find_by_equipment(self, equipment_id: str) -> list[Rental]:
        return self._select(rentals.c.equipment_id == equipment_id)

    def find_by_status(self, status: RentalStatus) -> list[Rental]:
        return self._select(rentals.c.status == str(status))

    def find_live_by_member(self, member_id: str) -> list[Rental]:
        return self._select(rentals.c.member_id == member_id, rentals.c.status.in_(_LIVE))

    def find_overlapping(self, equipment_id: str, period: DateRange) -> list[Rental]:
        """Live rentals on *equipment_id* whose period overlaps *period*."""
        return self._select(
            rentals.c.equipment_id == equipment_id,
            rentals.c.status.in_(_LIVE),
            rentals.c.start_at < to_iso(period.end),
            rentals.c.end_at > to_iso(period.start),
        )

    def find_overdue(self, now: datetime) -> list[Rental]:
        """ACTIVE rentals whose period has ended and still need the OVERDUE transition."""
        return self._select(
            rentals.c.status == str(RentalStatus.ACTIVE),
            rentals.c.end_at <= to_iso(now),
        )

    def find_ending_between(self, start: datetime, end: datetime) -> list[Rental]:
        return self._select(
            rentals.c.status == str(RentalStatus.ACTIVE),
            rentals.c.end_at >= to_iso(start),
            rentals.c.end_at <= to_iso(end),
        )

    def count_by_status(self, status: RentalStatus) -> int:
        stmt = select(func.count()).select_from(rentals).where(rentals.c.status == str(status))
        return int(self._conn.execute(stmt).scalar_one())

    def save(self, rental: Rental) -> None:
        self._upsert(
            {
                "id": rental.id,
                "equipment_id": rental.equipment_id,
                "member_id": rental.member_id,
                "start_at": to_iso(rental.period.start),
                "end_at": to_iso(rental.period.end),
                "status": str(rental.status),
                "base_cost_cents": rental.base_cost.cents,
                "total_cost_cents": rental.total_cost.cents,
                "late_fee_cents": rental.late_fee.cents,
                "damage_fee_cents": rental.damage_fee.cents,
                "condition_at_start": str(rental.condition_at_start),
                "condition_at_return": (
                    str(rental.condition_at_return) if rental.condition_at_return else None
                ),
                "created_at": to_iso(rental.created_at),
                "returned_at": iso_or_none(rental.returned_at),
                "cancelled_at": iso_or_none(rental.cancelled_at),
                "transaction_id": rental.transaction_id,
            }
        )
