"""Reservation persistence."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, select

from rentalctl.domain.dates import DateRange, from_iso, to_iso
from rentalctl.domain.lifecycle import LIVE_RESERVATION_STATUSES, ReservationStatus
from rentalctl.domain.reservation import Reservation
from rentalctl.infrastructure.database.schema import reservations
from rentalctl.infrastructure.repositories._base import SqlRepository, dt_or_none, iso_or_none

_LIVE = [str(s) for s in LIVE_RESERVATION_STATUSES]


def _to_entity(row: Any) -> Reservation:
    return Reservation(
        id=row.id,
        equipment_id=row.equipment_id,
        member_id=row.member_id,
        period=DateRange(from_iso(row.start_at), from_iso(row.end_at)),
        status=ReservationStatus(row.status),
        created_at=from_iso(row.created_at),
        confirmed_at=dt_or_none(row.confirmed_at),
        cancelled_at=dt_or_none(row.cancelled_at),
        fulfilled_at=dt_or_none(row.fulfilled_at),
        expired_at=dt_or_none(row.expired_at),
        cancellation_reason=row.cancellation_reason,
        authorization_id=row.authorization_id,
        rental_id=row.rental_id,
    )


class SqlReservationRepository(SqlRepository):
    table = reservations

    def _select(self, *criteria: Any) -> list[Reservation]:
        stmt = (
            select(reservations)
            .where(*criteria)
            .order_by(reservations.c.start_at, reservations.c.id)
        )
        return [_to_entity(r) for r in self._conn.execute(stmt).fetchall()]

    def find_by_id(self, reservation_id: str) -> Reservation | None:
        row = self._fetch_one(reservation_id)
        return _to_entity(row) if row is not None else None

    def find_all(self) -> list[Reservation]:
        return self._select()

    def find_by_member(self, member_id: str) -> list[Reservation]:
        return self._select(reservations.c.member_id == member_id)

    def find_by_equipment(self, equipment_id: str) -> list[Reservation]:
        return self._select(reservations.c.equipment_id == equipment_id)

    def find_by_status(self, status: ReservationStatus) -> list[Reservation]:
        return self._select(reservations.c.status == str(status))

    def find_conflicting(
        self,
        equipment_id: str,
        period: DateRange,
        exclude_id: str | None = None,
    ) -> list[Reservation]:
        """Live reservations on *equipment_id* overlapping *period* (half-open)."""
        criteria = [
            reservations.c.equipment_id == equipment_id,
            reservations.c.status.in_(_LIVE),
            reservations.c.start_at < to_iso(period.end),
            reservations.c.end_at > to_iso(period.start),
        ]
        if exclude_id is not None:
            criteria.append(reservations.c.id != exclude_id)
        return self._select(*criteria)

    def find_ready_to_fulfill(self, now: datetime) -> list[Reservation]:
        """CONFIRMED reservations whose period is under way."""
        instant = to_iso(now)
        return self._select(
            reservations.c.status == str(ReservationStatus.CONFIRMED),
            reservations.c.start_at <= instant,
            reservations.c.end_at > instant,
        )

    def find_expired(self, now: datetime) -> list[Reservation]:
        """Live reservations whose period has ended without fulfillment."""
        return self._select(
            reservations.c.status.in_(_LIVE),
            reservations.c.end_at <= to_iso(now),
        )

    def find_starting_between(self, start: datetime, end: datetime) -> list[Reservation]:
        return self._select(
            reservations.c.status.in_(_LIVE),
            reservations.c.start_at >= to_iso(start),
            reservations.c.start_at <= to_iso(end),
        )

    def count_by_status(self, status: ReservationStatus) -> int:
        stmt = (
            select(func.count())
            .select_from(reservations)
            .where(reservations.c.status == str(status))
        )
        return int(self._conn.execute(stmt).scalar_one())

    def save(self, reservation: Reservation) -> None:
        self._upsert(
            {
                "id": reservation.id,
                "equipment_id": reservation.equipment_id,
                "member_id": reservation.member_id,
                "start_at": to_iso(reservation.period.start),
                "end_at": to_iso(reservation.period.end),
                "status": str(reservation.status),
                "created_at": to_iso(reservation.created_at),
                "confirmed_at": iso_or_none(reservation.confirmed_at),
                "cancelled_at": iso_or_none(reservation.cancelled_at),
                "fulfilled_at": iso_or_none(reservation.fulfilled_at),
                "expired_at": iso_or_none(reservation.expired_at),
                "cancellation_reason": reservation.cancellation_reason,
                "authorization_id": reservation.authorization_id,
                "rental_id": reservation.rental_id,
            }
        )
