"""Reservation — a future-dated hold on equipment prior to handoff."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from rentalctl.domain.dates import DateRange, ensure_utc
from rentalctl.domain.errors import (
    InvalidInputError,
    InvalidTransitionError,
    ReservationAlreadyCancelledError,
)
from rentalctl.domain.ids import generate_id
from rentalctl.domain.lifecycle import (
    LIVE_RESERVATION_STATUSES,
    RESERVATION_TRANSITIONS,
    ReservationStatus,
    require_transition,
)


class Reservation(BaseModel):
    """Immutable reservation snapshot.

    ``authorization_id`` is the payment hold taken at creation, if any.  It
    is resolved exactly once: captured on fulfillment or cancelled on
    cancellation/expiry.
    """

    model_config = {"frozen": True}

    id: str
    equipment_id: str
    member_id: str
    period: DateRange
    status: ReservationStatus = ReservationStatus.PENDING
    created_at: datetime
    confirmed_at: datetime | None = None
    cancelled_at: datetime | None = None
    fulfilled_at: datetime | None = None
    expired_at: datetime | None = None
    cancellation_reason: str | None = None
    authorization_id: str | None = None
    rental_id: str | None = None

    @classmethod
    def create(
        cls,
        *,
        equipment_id: str,
        member_id: str,
        period: DateRange,
        now: datetime,
        reservation_id: str | None = None,
    ) -> Reservation:
        if period.has_started(now):
            raise InvalidInputError(
                "Reservation period must start in the future",
                start=period.start.isoformat(),
            )
        return cls(
            id=reservation_id or generate_id("reservation"),
            equipment_id=equipment_id,
            member_id=member_id,
            period=period,
            created_at=ensure_utc(now),
        )

    def _require(self, target: ReservationStatus, reason: str | None = None) -> None:
        require_transition("reservation", self.id, self.status, target, RESERVATION_TRANSITIONS)
        if reason is not None:
            raise InvalidTransitionError("reservation", self.id, self.status, target, reason)

    # --- Transitions ---

    def confirm(self, now: datetime, *, authorization_id: str | None = None) -> Reservation:
        self._require(
            ReservationStatus.CONFIRMED,
            "period has already started" if self.period.has_started(now) else None,
        )
        return self.model_copy(
            update={
                "status": ReservationStatus.CONFIRMED,
                "confirmed_at": ensure_utc(now),
                "authorization_id": authorization_id or self.authorization_id,
            }
        )

    def cancel(self, now: datetime, reason: str | None = None) -> Reservation:
        if self.status is ReservationStatus.CANCELLED:
            raise ReservationAlreadyCancelledError(self.id)
        self._require(
            ReservationStatus.CANCELLED,
            "period has already ended" if self.period.has_ended(now) else None,
        )
        return self.model_copy(
            update={
                "status": ReservationStatus.CANCELLED,
                "cancelled_at": ensure_utc(now),
                "cancellation_reason": reason,
            }
        )

    def fulfill(self, rental_id: str, now: datetime) -> Reservation:
        """Mark as converted into rental *rental_id*."""
        self._require(
            ReservationStatus.FULFILLED,
            None if self.period.has_started(now) else "period has not started yet",
        )
        return self.model_copy(
            update={
                "status": ReservationStatus.FULFILLED,
                "fulfilled_at": ensure_utc(now),
                "rental_id": rental_id,
            }
        )

    def mark_as_expired(self, now: datetime) -> Reservation:
        self._require(
            ReservationStatus.EXPIRED,
            None if self.period.has_ended(now) else "period has not ended yet",
        )
        return self.model_copy(
            update={"status": ReservationStatus.EXPIRED, "expired_at": ensure_utc(now)}
        )

    # --- Queries ---

    @property
    def is_live(self) -> bool:
        """PENDING or CONFIRMED: the reservation holds the equipment."""
        return self.status in LIVE_RESERVATION_STATUSES

    def is_active(self, now: datetime) -> bool:
        return self.is_live and not self.period.has_ended(now)

    def overlaps(self, period: DateRange) -> bool:
        return self.period.overlaps(period)

    def conflicts_with(self, other: Reservation) -> bool:
        """Same equipment, both live, overlapping windows."""
        return (
            self.id != other.id
            and self.equipment_id == other.equipment_id
            and self.is_live
            and other.is_live
            and self.period.overlaps(other.period)
        )

    def is_ready_to_fulfill(self, now: datetime) -> bool:
        return (
            self.status is ReservationStatus.CONFIRMED
            and self.period.has_started(now)
            and not self.period.has_ended(now)
        )
