"""ReservationService — future bookings, payment holds and fulfillment.

A reservation may carry a payment authorization (hold).  The hold is
resolved exactly once: captured when the reservation is fulfilled, or
cancelled when the reservation is cancelled or expires.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta

import structlog

from rentalctl.domain.dates import to_iso
from rentalctl.domain.errors import DomainError, PaymentFailedError
from rentalctl.domain.events import (
    RentalCreated,
    ReservationCancelled,
    ReservationConfirmed,
    ReservationCreated,
    ReservationExpired,
    ReservationFulfilled,
)
from rentalctl.domain.ids import generate_id
from rentalctl.domain.lifecycle import ReservationStatus
from rentalctl.domain.member import Member
from rentalctl.domain.ports import PaymentResult
from rentalctl.domain.reservation import Reservation
from rentalctl.services import _booking
from rentalctl.services._helpers import money_str, parse_choice, resolve_now, snapshot
from rentalctl.services.base import BaseService
from rentalctl.services.result import ServiceResult
from rentalctl.services.telemetry import trace_span, traced

log = structlog.get_logger(__name__)

_SECONDS_PER_DAY = 86_400


class ReservationService(BaseService):
    """Reservation lifecycle use cases."""

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------

    @traced
    def create_reservation(
        self,
        *,
        member_id: str,
        equipment_id: str,
        start: datetime,
        end: datetime | None = None,
        days: int | None = None,
        authorize: bool | None = None,
        payment_method: str | None = None,
        now: datetime | None = None,
    ) -> ServiceResult:
        """Book a future window.

        With *authorize* (default from ``reservations.authorize_by_default``)
        a hold for the estimated cost is placed and the reservation is
        CONFIRMED straight away; otherwise it starts PENDING.
        """
        op = "create_reservation"
        warnings: list[str] = []
        at = resolve_now(now)
        if authorize is None:
            authorize = self._store.settings.reservations.authorize_by_default
        member: Member | None = None
        authorization_id: str | None = None

        try:
            method = self._payment_method(payment_method)
            period = _booking.build_period(start, end, days)
            with self._store.transaction(equipment_id=equipment_id) as uow:
                equipment = self._equipment(uow, equipment_id)
                member = self._member(uow, member_id)
                _booking.check_reservation_eligibility(uow, member, period, at)
                _booking.check_bookable(uow, equipment, period)

                reservation = Reservation.create(
                    equipment_id=equipment_id, member_id=member_id, period=period, now=at
                )
                full_price = equipment.calculate_rental_cost(period.days)
                estimate = member.apply_discount(full_price)
                if authorize:
                    with trace_span("authorization"):
                        authorization_id = self._authorize(member, estimate, method=method)
                    reservation = reservation.confirm(at, authorization_id=authorization_id)
                uow.reservations.save(reservation)
        except PaymentFailedError as exc:
            self._notify_payment_failed(member, exc, warnings)
            return ServiceResult.failure(op, exc, warnings)
        except DomainError as exc:
            self._release_hold(authorization_id, warnings)
            return ServiceResult.failure(op, exc, warnings)
        except Exception:
            self._release_hold(authorization_id, warnings)
            raise

        log.info(
            "reservation.created",
            reservation_id=reservation.id,
            equipment_id=equipment_id,
            status=str(reservation.status),
            authorized=authorization_id is not None,
        )
        notifier = self._store.notifier
        self._notify(warnings, notifier.notify_reservation_created, member, reservation)
        self._dispatch_event(
            ReservationCreated(
                reservation_id=reservation.id,
                member_id=member_id,
                equipment_id=equipment_id,
                start=period.start,
                end=period.end,
                status=str(reservation.status),
            ),
            warnings,
        )
        if reservation.status is ReservationStatus.CONFIRMED:
            self._after_confirm(member, reservation, warnings)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "reservation": snapshot(reservation),
                "estimated_cost": money_str(estimate),
                "discount": money_str(full_price - estimate),
            },
            warnings=warnings,
        )

    @traced
    def confirm_reservation(
        self,
        reservation_id: str,
        *,
        authorize: bool | None = None,
        payment_method: str | None = None,
        now: datetime | None = None,
    ) -> ServiceResult:
        """Confirm a PENDING reservation after re-checking it against current bookings."""
        op = "confirm_reservation"
        warnings: list[str] = []
        at = resolve_now(now)
        if authorize is None:
            authorize = self._store.settings.reservations.authorize_by_default
        member: Member | None = None
        authorization_id: str | None = None

        try:
            method = self._payment_method(payment_method)
            equipment_id = self._equipment_of(reservation_id)
            with self._store.transaction(equipment_id=equipment_id) as uow:
                reservation = self._reservation(uow, reservation_id)
                equipment = self._equipment(uow, reservation.equipment_id)
                member = self._member(uow, reservation.member_id)
                # Validates the transition before any money moves.
                reservation.confirm(at)
                _booking.check_bookable(
                    uow, equipment, reservation.period, exclude_reservation_id=reservation.id
                )
                if authorize and reservation.authorization_id is None:
                    estimate = _booking.quote(member, equipment, reservation.period.days)
                    with trace_span("authorization"):
                        authorization_id = self._authorize(member, estimate, method=method)
                reservation = reservation.confirm(at, authorization_id=authorization_id)
                uow.reservations.save(reservation)
        except PaymentFailedError as exc:
            self._notify_payment_failed(member, exc, warnings)
            return ServiceResult.failure(op, exc, warnings)
        except DomainError as exc:
            self._release_hold(authorization_id, warnings)
            return ServiceResult.failure(op, exc, warnings)
        except Exception:
            self._release_hold(authorization_id, warnings)
            raise

        log.info("reservation.confirmed", reservation_id=reservation_id)
        self._after_confirm(member, reservation, warnings)
        return ServiceResult(
            ok=True, op=op, data={"reservation": snapshot(reservation)}, warnings=warnings
        )

    @traced
    def cancel_reservation(
        self,
        reservation_id: str,
        *,
        reason: str | None = None,
        now: datetime | None = None,
    ) -> ServiceResult:
        """Cancel a live reservation and release its payment hold."""
        op = "cancel_reservation"
        warnings: list[str] = []
        at = resolve_now(now)
        try:
            equipment_id = self._equipment_of(reservation_id)
            with self._store.transaction(equipment_id=equipment_id) as uow:
                reservation = self._reservation(uow, reservation_id).cancel(at, reason)
                uow.reservations.save(reservation)
                member = self._member(uow, reservation.member_id)
        except DomainError as exc:
            return ServiceResult.failure(op, exc, warnings)

        self._release_hold(reservation.authorization_id, warnings)
        log.info("reservation.cancelled", reservation_id=reservation_id, reason=reason)
        self._notify(
            warnings, self._store.notifier.notify_reservation_cancelled, member, reservation
        )
        self._dispatch_event(
            ReservationCancelled(
                reservation_id=reservation_id,
                member_id=reservation.member_id,
                equipment_id=reservation.equipment_id,
                reason=reason,
            ),
            warnings,
        )
        return ServiceResult(
            ok=True, op=op, data={"reservation": snapshot(reservation)}, warnings=warnings
        )

    # ------------------------------------------------------------------
    # Fulfillment
    # ------------------------------------------------------------------

    @traced
    def fulfill_reservation(
        self,
        reservation_id: str,
        *,
        payment_method: str | None = None,
        now: datetime | None = None,
    ) -> ServiceResult:
        """Turn a CONFIRMED reservation whose period has started into a rental.

        Captures the reservation's hold when it has one, otherwise charges
        the member directly.  The rental covers the reservation's period.
        """
        op = "fulfill_reservation"
        warnings: list[str] = []
        at = resolve_now(now)
        member: Member | None = None
        payment: PaymentResult | None = None

        try:
            method = self._payment_method(payment_method)
            equipment_id = self._equipment_of(reservation_id)
            with self._store.transaction(equipment_id=equipment_id) as uow:
                reservation = self._reservation(uow, reservation_id)
                equipment = self._equipment(uow, reservation.equipment_id)
                member = self._member(uow, reservation.member_id)
                rental_id = generate_id("rental")
                fulfilled = reservation.fulfill(rental_id, at)

                period = reservation.period
                _booking.check_eligibility(uow, member, period, at)
                _booking.check_bookable(
                    uow, equipment, period, exclude_reservation_id=reservation.id
                )
                cost = _booking.quote(member, equipment, period.days)

                with trace_span("payment"):
                    if reservation.authorization_id is not None:
                        payment = self._capture(member, reservation.authorization_id, cost)
                    else:
                        payment = self._charge(
                            member,
                            cost,
                            description=f"Rental of {equipment.name} ({reservation.id})",
                            method=method,
                            rental_id=rental_id,
                        )
                rental, equipment, member = _booking.open_rental(
                    uow,
                    rental_id=rental_id,
                    member=member,
                    equipment=equipment,
                    period=period,
                    cost=cost,
                    transaction_id=payment.transaction_id,
                    now=at,
                )
                uow.reservations.save(fulfilled)
        except PaymentFailedError as exc:
            self._notify_payment_failed(member, exc, warnings)
            return ServiceResult.failure(op, exc, warnings)
        except DomainError as exc:
            self._release(payment, "reservation was not fulfilled", warnings)
            return ServiceResult.failure(op, exc, warnings)
        except Exception:
            self._release(payment, "reservation was not fulfilled", warnings)
            raise

        log.info("reservation.fulfilled", reservation_id=reservation_id, rental_id=rental.id)
        notifier = self._store.notifier
        self._notify(warnings, notifier.notify_rental_created, member, rental, equipment)
        self._notify(
            warnings, notifier.notify_payment_received, member, cost, payment.transaction_id
        )
        self._dispatch_event(
            ReservationFulfilled(
                reservation_id=reservation_id,
                rental_id=rental.id,
                member_id=member.id,
                equipment_id=equipment.id,
            ),
            warnings,
        )
        self._dispatch_event(
            RentalCreated(
                rental_id=rental.id,
                member_id=member.id,
                equipment_id=equipment.id,
                start=rental.period.start,
                end=rental.period.end,
                daily_rate=equipment.daily_rate.amount,
                total_cost=rental.total_cost.amount,
            ),
            warnings,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "reservation": snapshot(fulfilled),
                "rental": snapshot(rental),
                "payment": {
                    "transaction_id": payment.transaction_id,
                    "amount": money_str(payment.amount),
                    "status": str(payment.status),
                    "captured": reservation.authorization_id is not None,
                },
            },
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Sweeps
    # ------------------------------------------------------------------

    @traced
    def process_expired_reservations(self, *, now: datetime | None = None) -> ServiceResult:
        """Expire every live reservation whose period has ended; release their holds."""
        warnings: list[str] = []
        at = resolve_now(now)
        with self._store.read() as uow:
            candidates = uow.reservations.find_expired(at)

        expired: list[dict[str, object]] = []
        for candidate in candidates:
            try:
                with self._store.transaction(equipment_id=candidate.equipment_id) as uow:
                    reservation = self._reservation(uow, candidate.id)
                    if not reservation.is_live:
                        continue
                    reservation = reservation.mark_as_expired(at)
                    uow.reservations.save(reservation)
            except DomainError as exc:
                warnings.append(f"{candidate.id}: {exc}")
                continue

            self._release_hold(reservation.authorization_id, warnings)
            log.info("reservation.expired", reservation_id=reservation.id)
            self._dispatch_event(
                ReservationExpired(
                    reservation_id=reservation.id,
                    member_id=reservation.member_id,
                    equipment_id=reservation.equipment_id,
                ),
                warnings,
            )
            expired.append(
                {
                    "reservation_id": reservation.id,
                    "member_id": reservation.member_id,
                    "hold_released": reservation.authorization_id is not None,
                }
            )

        return ServiceResult(
            ok=True,
            op="process_expired_reservations",
            data={"items": expired, "count": len(expired)},
            warnings=warnings,
        )

    @traced
    def send_reservation_reminders(
        self,
        *,
        days: int | None = None,
        now: datetime | None = None,
    ) -> ServiceResult:
        """Remind members of live reservations starting within *days* days."""
        warnings: list[str] = []
        at = resolve_now(now)
        horizon = days if days is not None else self._store.settings.reservations.reminder_days

        with self._store.read() as uow:
            upcoming = uow.reservations.find_starting_between(at, at + timedelta(days=horizon))
            members = {r.member_id: uow.members.find_by_id(r.member_id) for r in upcoming}

        reminders: list[dict[str, object]] = []
        for reservation in upcoming:
            member = members.get(reservation.member_id)
            if member is None:
                continue
            days_until = math.ceil(
                (reservation.period.start - at).total_seconds() / _SECONDS_PER_DAY
            )
            self._notify(
                warnings,
                self._store.notifier.notify_reservation_reminder,
                member,
                reservation,
                days_until,
            )
            reminders.append(
                {
                    "reservation_id": reservation.id,
                    "member_id": reservation.member_id,
                    "days_until": days_until,
                }
            )

        return ServiceResult(
            ok=True,
            op="send_reservation_reminders",
            data={"items": reminders, "count": len(reminders), "days": horizon},
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @traced
    def check_availability(
        self,
        equipment_id: str,
        *,
        start: datetime,
        end: datetime | None = None,
        days: int | None = None,
    ) -> ServiceResult:
        """Whether *equipment_id* could be booked for the window, and what blocks it."""
        op = "check_availability"
        try:
            period = _booking.build_period(start, end, days)
            with self._store.read() as uow:
                equipment = self._equipment(uow, equipment_id)
                result = _booking.availability(uow, equipment, period)
        except DomainError as exc:
            return ServiceResult.failure(op, exc)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "equipment_id": equipment_id,
                "start": to_iso(period.start),
                "end": to_iso(period.end),
                "days": period.days,
                "available": result.is_available,
                "reservation_conflicts": result.reservation_conflicts,
                "rental_conflicts": result.rental_conflicts,
                "equipment_problem": result.equipment_problem,
                "estimated_cost": money_str(equipment.calculate_rental_cost(period.days)),
            },
        )

    @traced
    def list_ready_to_fulfill(self, *, now: datetime | None = None) -> ServiceResult:
        at = resolve_now(now)
        with self._store.read() as uow:
            items = uow.reservations.find_ready_to_fulfill(at)
        return ServiceResult(
            ok=True,
            op="list_ready_to_fulfill",
            data={"items": [snapshot(r) for r in items], "count": len(items)},
        )

    @traced
    def get_reservation(self, reservation_id: str) -> ServiceResult:
        op = "get_reservation"
        try:
            with self._store.read() as uow:
                reservation = self._reservation(uow, reservation_id)
        except DomainError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"reservation": snapshot(reservation)})

    @traced
    def list_reservations(
        self,
        *,
        member_id: str | None = None,
        equipment_id: str | None = None,
        status: ReservationStatus | str | None = None,
    ) -> ServiceResult:
        op = "list_reservations"
        try:
            wanted = parse_choice(ReservationStatus, status, field="status") if status else None
        except DomainError as exc:
            return ServiceResult.failure(op, exc)

        with self._store.read() as uow:
            if member_id is not None:
                items = uow.reservations.find_by_member(member_id)
            elif equipment_id is not None:
                items = uow.reservations.find_by_equipment(equipment_id)
            elif wanted is not None:
                items = uow.reservations.find_by_status(wanted)
            else:
                items = uow.reservations.find_all()
        if equipment_id is not None:
            items = [r for r in items if r.equipment_id == equipment_id]
        if wanted is not None:
            items = [r for r in items if r.status is wanted]
        return ServiceResult(
            ok=True,
            op=op,
            data={"items": [snapshot(r) for r in items], "count": len(items)},
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _equipment_of(self, reservation_id: str) -> str:
        with self._store.read() as uow:
            return self._reservation(uow, reservation_id).equipment_id

    def _after_confirm(self, member: Member, reservation: Reservation, warnings: list[str]) -> None:
        self._notify(
            warnings, self._store.notifier.notify_reservation_confirmed, member, reservation
        )
        self._dispatch_event(
            ReservationConfirmed(
                reservation_id=reservation.id,
                member_id=reservation.member_id,
                equipment_id=reservation.equipment_id,
            ),
            warnings,
        )
