"""RentalService — rental checkout, return, extension and cancellation.

Pipeline for every write: LOAD → VALIDATE → PAY → PERSIST → NOTIFY/EVENT.
Payment happens inside the per-equipment transaction, before anything is
written; if persisting fails afterwards the charge is refunded.
Notifications and events go out only after commit.
"""

from __future__ import annotations

from datetime import datetime, timedelta

import structlog

from rentalctl.domain.dates import DateRange
from rentalctl.domain.errors import (
    DomainError,
    InvalidInputError,
    PaymentFailedError,
    ScheduleConflictError,
)
from rentalctl.domain.events import (
    EquipmentDamaged,
    RentalCancelled,
    RentalCreated,
    RentalExtended,
    RentalOverdue,
    RentalReturned,
)
from rentalctl.domain.ids import generate_id
from rentalctl.domain.lifecycle import RentalStatus
from rentalctl.domain.member import Member
from rentalctl.domain.money import Money
from rentalctl.domain.ports import PaymentResult, PaymentStatus
from rentalctl.domain.rental import Rental
from rentalctl.domain.types import EquipmentCondition
from rentalctl.services import _booking
from rentalctl.services._helpers import (
    as_money,
    money_str,
    parse_choice,
    resolve_now,
    snapshot,
)
from rentalctl.services.base import BaseService
from rentalctl.services.result import ServiceResult
from rentalctl.services.telemetry import trace_span, traced

log = structlog.get_logger(__name__)


def _payment_data(payment: PaymentResult | None) -> dict[str, str] | None:
    if payment is None:
        return None
    return {
        "transaction_id": payment.transaction_id,
        "amount": money_str(payment.amount),
        "status": str(payment.status),
    }


class RentalService(BaseService):
    """Rental lifecycle use cases."""

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    @traced
    def create_rental(
        self,
        *,
        member_id: str,
        equipment_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
        days: int | None = None,
        payment_method: str | None = None,
        now: datetime | None = None,
    ) -> ServiceResult:
        """Check equipment out to a member and charge the discounted base cost.

        The period is ``[start, end)`` or *days* days from *start*
        (default: now).
        """
        op = "create_rental"
        warnings: list[str] = []
        at = resolve_now(now)
        member: Member | None = None
        payment: PaymentResult | None = None

        try:
            method = self._payment_method(payment_method)
            period = _booking.build_period(start or at, end, days)
            with self._store.transaction(equipment_id=equipment_id) as uow:
                equipment = self._equipment(uow, equipment_id)
                member = self._member(uow, member_id)
                _booking.check_eligibility(uow, member, period, at)
                _booking.check_bookable(uow, equipment, period)
                cost = _booking.quote(member, equipment, period.days)

                rental_id = generate_id("rental")
                with trace_span("payment"):
                    payment = self._charge(
                        member,
                        cost,
                        description=f"Rental of {equipment.name} ({period.days} days)",
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
        except PaymentFailedError as exc:
            self._notify_payment_failed(member, exc, warnings)
            return ServiceResult.failure(op, exc, warnings)
        except DomainError as exc:
            self._release(payment, "rental was not created", warnings)
            return ServiceResult.failure(op, exc, warnings)
        except Exception:
            self._release(payment, "rental was not created", warnings)
            raise

        log.info(
            "rental.created",
            rental_id=rental.id,
            member_id=member.id,
            equipment_id=equipment.id,
            total=money_str(rental.total_cost),
        )
        notifier = self._store.notifier
        self._notify(warnings, notifier.notify_rental_created, member, rental, equipment)
        self._notify(
            warnings, notifier.notify_payment_received, member, cost, payment.transaction_id
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
            data={"rental": snapshot(rental), "payment": _payment_data(payment)},
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Return
    # ------------------------------------------------------------------

    @traced
    def return_rental(
        self,
        rental_id: str,
        *,
        condition: EquipmentCondition | str,
        payment_method: str | None = None,
        now: datetime | None = None,
    ) -> ServiceResult:
        """Take equipment back, charging any late and damage fees.

        A rental still ACTIVE past its end accrues the late fee at the
        configured daily rate.  The damage fee comes from the degradation
        between the condition at checkout and *condition*.
        """
        op = "return_rental"
        warnings: list[str] = []
        at = resolve_now(now)
        member: Member | None = None
        payment: PaymentResult | None = None

        try:
            method = self._payment_method(payment_method)
            condition_at_return = parse_choice(EquipmentCondition, condition, field="condition")
            equipment_id = self._equipment_of(rental_id)
            with self._store.transaction(equipment_id=equipment_id) as uow:
                rental = self._rental(uow, rental_id)
                equipment = self._equipment(uow, rental.equipment_id)
                member = self._member(uow, rental.member_id)

                damage_fee = rental.calculate_damage_fee(condition_at_return)
                rental = rental.return_rental(
                    condition_at_return, damage_fee, at, fallback_daily_rate=self._late_fee_rate()
                )
                equipment = equipment.mark_as_returned(condition_at_return)
                member = member.decrement_active_rentals()

                fees_due = rental.late_fee + rental.damage_fee
                if fees_due.is_positive:
                    with trace_span("payment"):
                        payment = self._charge(
                            member,
                            fees_due,
                            description=f"Late and damage fees for {equipment.name}",
                            method=method,
                            rental_id=rental.id,
                        )

                uow.rentals.save(rental)
                uow.equipment.save(equipment)
                uow.members.save(member)
        except PaymentFailedError as exc:
            self._notify_payment_failed(member, exc, warnings)
            return ServiceResult.failure(op, exc, warnings)
        except DomainError as exc:
            self._release(payment, "rental return was not recorded", warnings)
            return ServiceResult.failure(op, exc, warnings)
        except Exception:
            self._release(payment, "rental return was not recorded", warnings)
            raise

        assert rental.returned_at is not None
        log.info(
            "rental.returned",
            rental_id=rental.id,
            late_fee=money_str(rental.late_fee),
            damage_fee=money_str(rental.damage_fee),
            total=money_str(rental.total_cost),
        )
        notifier = self._store.notifier
        self._notify(warnings, notifier.notify_rental_returned, member, rental, equipment)
        if payment is not None:
            self._notify(
                warnings,
                notifier.notify_payment_received,
                member,
                payment.amount,
                payment.transaction_id,
            )
        self._dispatch_event(
            RentalReturned(
                rental_id=rental.id,
                member_id=rental.member_id,
                equipment_id=rental.equipment_id,
                returned_at=rental.returned_at,
                late_fee=rental.late_fee.amount,
                damage_fee=rental.damage_fee.amount,
                total_cost=rental.total_cost.amount,
            ),
            warnings,
        )
        if rental.damage_fee.is_positive:
            self._notify(
                warnings, notifier.notify_equipment_damaged, member, equipment, rental.damage_fee
            )
            self._dispatch_event(
                EquipmentDamaged(
                    equipment_id=equipment.id,
                    rental_id=rental.id,
                    condition_before=str(rental.condition_at_start),
                    condition_after=str(condition_at_return),
                    damage_fee=rental.damage_fee.amount,
                ),
                warnings,
            )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "rental": snapshot(rental),
                "equipment_available": equipment.is_available,
                "payment": _payment_data(payment),
            },
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Extension
    # ------------------------------------------------------------------

    @traced
    def extend_rental(
        self,
        rental_id: str,
        *,
        additional_days: int,
        payment_method: str | None = None,
        now: datetime | None = None,
    ) -> ServiceResult:
        """Lengthen a live rental, paying for the extra days up front.

        The added window must be free of other bookings.  Extending an
        OVERDUE rental returns it to ACTIVE and forgives its late fee.
        """
        op = "extend_rental"
        warnings: list[str] = []
        at = resolve_now(now)
        member: Member | None = None
        payment: PaymentResult | None = None

        try:
            method = self._payment_method(payment_method)
            if additional_days <= 0:
                raise InvalidInputError(
                    "Additional days must be greater than zero", days=additional_days
                )
            equipment_id = self._equipment_of(rental_id)
            with self._store.transaction(equipment_id=equipment_id) as uow:
                rental = self._rental(uow, rental_id)
                equipment = self._equipment(uow, rental.equipment_id)
                member = self._member(uow, rental.member_id)
                cost = _booking.quote(member, equipment, additional_days)
                extended = rental.extend_period(additional_days, cost)
                _booking.check_duration(member, extended.period.days)
                added = DateRange(rental.period.end, extended.period.end)
                clash = _booking.availability(uow, equipment, added)
                if clash.conflicts:
                    raise ScheduleConflictError(equipment.id, clash.conflicts)
                with trace_span("payment"):
                    payment = self._charge(
                        member,
                        cost,
                        description=f"Extension of {equipment.name} ({additional_days} days)",
                        method=method,
                        rental_id=rental.id,
                    )
                uow.rentals.save(extended)
        except PaymentFailedError as exc:
            self._notify_payment_failed(member, exc, warnings)
            return ServiceResult.failure(op, exc, warnings)
        except DomainError as exc:
            self._release(payment, "rental was not extended", warnings)
            return ServiceResult.failure(op, exc, warnings)
        except Exception:
            self._release(payment, "rental was not extended", warnings)
            raise

        log.info(
            "rental.extended",
            rental_id=rental_id,
            additional_days=additional_days,
            cost=money_str(cost),
            was_overdue=rental.status is RentalStatus.OVERDUE,
        )
        self._notify(
            warnings,
            self._store.notifier.notify_payment_received,
            member,
            cost,
            payment.transaction_id,
        )
        self._dispatch_event(
            RentalExtended(
                rental_id=rental_id,
                member_id=extended.member_id,
                equipment_id=extended.equipment_id,
                additional_days=additional_days,
                new_end=extended.period.end,
                additional_cost=cost.amount,
            ),
            warnings,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "rental": snapshot(extended),
                "additional_cost": money_str(cost),
                "payment": _payment_data(payment),
            },
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    @traced
    def cancel_rental(
        self,
        rental_id: str,
        *,
        reason: str = "rental cancelled",
        now: datetime | None = None,
    ) -> ServiceResult:
        """Cancel a live rental, refund its checkout charge and release the equipment."""
        op = "cancel_rental"
        warnings: list[str] = []
        at = resolve_now(now)
        member: Member | None = None
        refund: PaymentResult | None = None

        try:
            equipment_id = self._equipment_of(rental_id)
            with self._store.transaction(equipment_id=equipment_id) as uow:
                rental = self._rental(uow, rental_id)
                equipment = self._equipment(uow, rental.equipment_id)
                member = self._member(uow, rental.member_id)
                charged = rental.base_cost
                cancelled = rental.cancel(at)
                if equipment.current_rental_id == rental.id:
                    equipment = equipment.mark_as_returned(equipment.condition)
                member = member.decrement_active_rentals()

                if rental.transaction_id is not None:
                    refund = self._refund(member, rental.transaction_id, reason)
                    if refund.amount < charged:
                        warnings.append(
                            f"Refunded {refund.amount} of {charged}; "
                            "extension charges are not refunded automatically"
                        )

                uow.rentals.save(cancelled)
                uow.equipment.save(equipment)
                uow.members.save(member)
        except PaymentFailedError as exc:
            self._notify_payment_failed(member, exc, warnings)
            return ServiceResult.failure(op, exc, warnings)
        except DomainError as exc:
            return ServiceResult.failure(op, exc, warnings)

        refunded = refund.amount if refund is not None else Money.zero()
        log.info("rental.cancelled", rental_id=rental_id, refunded=money_str(refunded))
        self._dispatch_event(
            RentalCancelled(
                rental_id=rental_id,
                member_id=cancelled.member_id,
                equipment_id=cancelled.equipment_id,
                refunded=refunded.amount,
            ),
            warnings,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "rental": snapshot(cancelled),
                "refunded": money_str(refunded),
                "refund": _payment_data(refund),
            },
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Sweeps
    # ------------------------------------------------------------------

    @traced
    def process_overdue_rentals(
        self,
        *,
        daily_rate: Money | str | None = None,
        now: datetime | None = None,
    ) -> ServiceResult:
        """Flag every ACTIVE rental past its end as OVERDUE and accrue its late fee."""
        op = "process_overdue_rentals"
        warnings: list[str] = []
        at = resolve_now(now)
        try:
            rate = as_money(daily_rate) if daily_rate is not None else self._late_fee_rate()
        except DomainError as exc:
            return ServiceResult.failure(op, exc)

        with self._store.read() as uow:
            candidates = uow.rentals.find_overdue(at)

        processed: list[dict[str, object]] = []
        for candidate in candidates:
            try:
                with self._store.transaction(equipment_id=candidate.equipment_id) as uow:
                    rental = self._rental(uow, candidate.id)
                    if not rental.is_overdue(at):
                        continue
                    rental = rental.mark_as_overdue(rate, at)
                    uow.rentals.save(rental)
                    member = self._member(uow, rental.member_id)
            except DomainError as exc:
                warnings.append(f"{candidate.id}: {exc}")
                continue

            days = rental.days_overdue(at)
            log.info("rental.overdue", rental_id=rental.id, days_overdue=days)
            self._notify(warnings, self._store.notifier.notify_rental_overdue, member, rental, days)
            self._dispatch_event(
                RentalOverdue(
                    rental_id=rental.id,
                    member_id=rental.member_id,
                    equipment_id=rental.equipment_id,
                    days_overdue=days,
                    late_fee=rental.late_fee.amount,
                ),
                warnings,
            )
            processed.append(
                {
                    "rental_id": rental.id,
                    "member_id": rental.member_id,
                    "days_overdue": days,
                    "late_fee": money_str(rental.late_fee),
                }
            )

        return ServiceResult(
            ok=True,
            op=op,
            data={"items": processed, "count": len(processed), "daily_rate": money_str(rate)},
            warnings=warnings,
        )

    @traced
    def send_due_reminders(
        self,
        *,
        days: int | None = None,
        now: datetime | None = None,
    ) -> ServiceResult:
        """Remind members whose ACTIVE rentals end within *days* days."""
        warnings: list[str] = []
        at = resolve_now(now)
        horizon = days if days is not None else self._store.settings.rentals.due_reminder_days

        reminders: list[dict[str, object]] = []
        with self._store.read() as uow:
            due = uow.rentals.find_ending_between(at, at + timedelta(days=horizon))
            members = {r.member_id: uow.members.find_by_id(r.member_id) for r in due}

        for rental in due:
            days_left = rental.period.days_until_end(at)
            member = members.get(rental.member_id)
            if member is None or not 0 <= days_left <= horizon:
                continue
            self._notify(
                warnings, self._store.notifier.notify_rental_due_soon, member, rental, days_left
            )
            reminders.append(
                {
                    "rental_id": rental.id,
                    "member_id": rental.member_id,
                    "due": snapshot(rental)["period"]["end"],
                    "days_left": days_left,
                }
            )

        return ServiceResult(
            ok=True,
            op="send_due_reminders",
            data={"items": reminders, "count": len(reminders), "days": horizon},
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @traced
    def get_rental(self, rental_id: str, *, now: datetime | None = None) -> ServiceResult:
        op = "get_rental"
        at = resolve_now(now)
        try:
            with self._store.read() as uow:
                rental = self._rental(uow, rental_id)
                assessments = uow.assessments.find_by_rental(rental_id)
        except DomainError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "rental": snapshot(rental),
                "is_overdue": rental.is_overdue(at) or rental.status is RentalStatus.OVERDUE,
                "days_overdue": rental.days_overdue(at) if rental.is_live else 0,
                "assessments": [a.id for a in assessments],
            },
        )

    @traced
    def list_rentals(
        self,
        *,
        member_id: str | None = None,
        equipment_id: str | None = None,
        status: RentalStatus | str | None = None,
    ) -> ServiceResult:
        op = "list_rentals"
        try:
            wanted = parse_choice(RentalStatus, status, field="status") if status else None
        except DomainError as exc:
            return ServiceResult.failure(op, exc)

        with self._store.read() as uow:
            if member_id is not None:
                items = uow.rentals.find_by_member(member_id)
            elif equipment_id is not None:
                items = uow.rentals.find_by_equipment(equipment_id)
            elif wanted is not None:
                items = uow.rentals.find_by_status(wanted)
            else:
                items = uow.rentals.find_all()
        items = _filter_rentals(items, equipment_id=equipment_id, status=wanted)
        return ServiceResult(
            ok=True,
            op=op,
            data={"items": [snapshot(r) for r in items], "count": len(items)},
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _equipment_of(self, rental_id: str) -> str:
        """Equipment id of *rental_id*, read before taking the equipment lock."""
        with self._store.read() as uow:
            return self._rental(uow, rental_id).equipment_id

    def _late_fee_rate(self) -> Money:
        return Money.of(self._store.settings.fees.late_fee_per_day)

    def _refund(self, member: Member, transaction_id: str, reason: str) -> PaymentResult:
        gateway = self._store.payments
        original = gateway.get_payment_details(transaction_id)
        amount = original.amount if original is not None else Money.zero()
        result = gateway.process_refund(transaction_id, amount, reason)
        if result.status is not PaymentStatus.REFUNDED:
            raise PaymentFailedError(
                result.error_message or "refund was not processed",
                member_id=member.id,
                amount=money_str(amount),
                transaction_id=transaction_id,
                status=str(result.status),
            )
        return result


def _filter_rentals(
    items: list[Rental],
    *,
    equipment_id: str | None,
    status: RentalStatus | None,
) -> list[Rental]:
    if equipment_id is not None:
        items = [r for r in items if r.equipment_id == equipment_id]
    if status is not None:
        items = [r for r in items if r.status is status]
    return items
