"""BaseService — foundation for all rentalctl services.

Every service receives a :class:`Store` at construction time.  The Store
provides transactional repository access plus the payment gateway, notifier
and event bus.  Services own their transaction boundaries via
``self._store.transaction()`` and publish events only after commit.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from rentalctl.domain.errors import (
    EquipmentNotFoundError,
    MemberNotFoundError,
    PaymentFailedError,
    RentalNotFoundError,
    ReservationNotFoundError,
)
from rentalctl.domain.money import Money
from rentalctl.domain.ports import PaymentMethod, PaymentResult, PaymentStatus
from rentalctl.services._helpers import money_str, parse_choice

if TYPE_CHECKING:
    from collections.abc import Callable

    from rentalctl.domain.equipment import Equipment
    from rentalctl.domain.events import DomainEvent
    from rentalctl.domain.member import Member
    from rentalctl.domain.ports import EventPublisher, NotificationResult
    from rentalctl.domain.rental import Rental
    from rentalctl.domain.reservation import Reservation
    from rentalctl.infrastructure.store import Store, UnitOfWork

log = structlog.get_logger(__name__)


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class RentalService(BaseService):
            def return_rental(self, rental_id: str, ...) -> ServiceResult:
                with self._store.transaction(equipment_id=eid) as uow:
                    ...
    """

    def __init__(self, store: Store) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @staticmethod
    def _equipment(uow: UnitOfWork, equipment_id: str) -> Equipment:
        equipment = uow.equipment.find_by_id(equipment_id)
        if equipment is None:
            raise EquipmentNotFoundError(equipment_id)
        return equipment

    @staticmethod
    def _member(uow: UnitOfWork, member_id: str) -> Member:
        member = uow.members.find_by_id(member_id)
        if member is None:
            raise MemberNotFoundError(member_id)
        return member

    @staticmethod
    def _rental(uow: UnitOfWork, rental_id: str) -> Rental:
        rental = uow.rentals.find_by_id(rental_id)
        if rental is None:
            raise RentalNotFoundError(rental_id)
        return rental

    @staticmethod
    def _reservation(uow: UnitOfWork, reservation_id: str) -> Reservation:
        reservation = uow.reservations.find_by_id(reservation_id)
        if reservation is None:
            raise ReservationNotFoundError(reservation_id)
        return reservation

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def _payment_method(self, method: str | None) -> PaymentMethod:
        """Resolve *method* (case-insensitive) or the configured default."""
        return parse_choice(
            PaymentMethod,
            method or self._store.settings.payment.default_method,
            field="payment_method",
        )

    def _charge(
        self,
        member: Member,
        amount: Money,
        *,
        description: str,
        method: PaymentMethod,
        rental_id: str | None = None,
    ) -> PaymentResult:
        """Single-shot charge. Anything but SUCCESS raises PaymentFailedError.

        A charge left PENDING is voided first so it can never settle later.
        """
        gateway = self._store.payments
        result = gateway.process_payment(
            member_id=member.id,
            amount=amount,
            method=method,
            description=description,
            rental_id=rental_id,
        )
        if result.status is PaymentStatus.PENDING:
            void = gateway.cancel_payment(result.transaction_id)
            if void.status is PaymentStatus.CANCELLED:
                log.info("payment.voided", transaction_id=result.transaction_id)
            else:
                log.warning(
                    "payment.void_failed",
                    transaction_id=result.transaction_id,
                    error=void.error_message,
                )
        if not result.succeeded:
            raise _payment_error(member, amount, result)
        return result

    def _authorize(self, member: Member, amount: Money, *, method: PaymentMethod) -> str:
        """Place a hold; returns the authorization id."""
        result = self._store.payments.authorize_payment(
            member_id=member.id, amount=amount, method=method
        )
        if not result.is_hold:
            raise _payment_error(member, amount, result)
        return result.transaction_id

    def _capture(self, member: Member, authorization_id: str, amount: Money) -> PaymentResult:
        result = self._store.payments.capture_payment(authorization_id, amount)
        if not result.succeeded:
            raise _payment_error(member, amount, result)
        return result

    def _release(self, payment: PaymentResult | None, reason: str, warnings: list[str]) -> None:
        """Undo a payment after a later step failed.

        Settled charges are refunded, open holds cancelled.  A failed undo is
        reported as a warning.
        """
        if payment is None:
            return
        gateway = self._store.payments
        if payment.status is PaymentStatus.SUCCESS:
            undo = gateway.process_refund(payment.transaction_id, payment.amount, reason)
        elif payment.status is PaymentStatus.PENDING:
            undo = gateway.cancel_authorization(payment.transaction_id)
        else:
            return
        if undo.status in (PaymentStatus.REFUNDED, PaymentStatus.CANCELLED):
            log.info("payment.released", transaction_id=payment.transaction_id, reason=reason)
        else:
            log.warning(
                "payment.release_failed",
                transaction_id=payment.transaction_id,
                error=undo.error_message,
            )
            warnings.append(
                f"Could not release payment {payment.transaction_id}: {undo.error_message}"
            )

    def _release_hold(self, authorization_id: str | None, warnings: list[str]) -> None:
        """Cancel an open authorization, if any."""
        if authorization_id is None:
            return
        result = self._store.payments.cancel_authorization(authorization_id)
        if result.status is not PaymentStatus.CANCELLED:
            warnings.append(
                f"Could not cancel authorization {authorization_id}: {result.error_message}"
            )

    # ------------------------------------------------------------------
    # Side effects after commit
    # ------------------------------------------------------------------

    def _dispatch_event(self, event: DomainEvent, warnings: list[str]) -> None:
        """Publish a domain event. No-op if the event bus is not initialized.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        bus: EventPublisher | None = self._store.event_bus
        if bus is None:
            return
        try:
            bus.publish(event)
        except Exception:
            log.debug("event.publish_failed", hook=event.hook_name, exc_info=True)
            warnings.append(f"Event dispatch failed for {event.hook_name}")

    def _notify(
        self,
        warnings: list[str],
        send: Callable[..., NotificationResult],
        *args: Any,
    ) -> None:
        """Send a notification. Failures become warnings."""
        if not self._store.settings.notifications.enabled:
            return
        name = getattr(send, "__name__", "notify")
        try:
            result = send(*args)
        except Exception as exc:
            log.warning("notification.failed", notification=name, error=str(exc))
            warnings.append(f"Notification {name} failed: {exc}")
            return
        if not result.success:
            warnings.append(f"Notification {name} failed: {result.error_message}")

    def _notify_payment_failed(
        self, member: Member | None, exc: PaymentFailedError, warnings: list[str]
    ) -> None:
        if member is None:
            return
        amount = Money.of(exc.detail["amount"])
        notifier = self._store.notifier
        self._notify(warnings, notifier.notify_payment_failed, member, amount, exc.reason)


def _payment_error(member: Member, amount: Money, result: PaymentResult) -> PaymentFailedError:
    return PaymentFailedError(
        result.error_message or f"payment status {result.status}",
        member_id=member.id,
        amount=money_str(amount),
        transaction_id=result.transaction_id,
        status=str(result.status),
    )
