"""Log-backed notifier.

Renders each notification as a subject/body pair, writes it to the
structured log, and keeps it in an in-memory outbox so callers (and tests)
can inspect what would have been delivered.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from rentalctl.domain.dates import utc_now
from rentalctl.domain.ports import NotificationChannel, NotificationResult

if TYPE_CHECKING:
    from rentalctl.domain.equipment import Equipment
    from rentalctl.domain.member import Member
    from rentalctl.domain.money import Money
    from rentalctl.domain.rental import Rental
    from rentalctl.domain.reservation import Reservation

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class OutboxMessage:
    """A notification as it would have been sent."""

    kind: str
    recipient: str
    subject: str
    body: str
    result: NotificationResult


class LogNotifier:
    """Notifier that logs messages instead of delivering them."""

    def __init__(self, *, channel: str = NotificationChannel.EMAIL) -> None:
        self._channel = NotificationChannel(channel)
        self.outbox: list[OutboxMessage] = []

    def _send(self, kind: str, member: Member, subject: str, body: str) -> NotificationResult:
        result = NotificationResult(
            success=True,
            channel=self._channel,
            sent_at=utc_now(),
            message_id=f"msg_{uuid.uuid4().hex[:12]}",
        )
        self.outbox.append(OutboxMessage(kind, member.email, subject, body, result))
        log.info(
            "notification.sent",
            kind=kind,
            channel=str(self._channel),
            recipient=member.email,
            subject=subject,
            message_id=result.message_id,
        )
        return result

    # --- Rentals ---

    def notify_rental_created(
        self, member: Member, rental: Rental, equipment: Equipment
    ) -> NotificationResult:
        return self._send(
            "rental_created",
            member,
            f"Rental confirmed: {equipment.name}",
            f"Hi {member.name}, your rental of {equipment.name} runs {rental.period}. "
            f"Total: {rental.total_cost}.",
        )

    def notify_rental_returned(
        self, member: Member, rental: Rental, equipment: Equipment
    ) -> NotificationResult:
        lines = [f"Hi {member.name}, we received {equipment.name}."]
        if rental.late_fee.is_positive:
            lines.append(f"Late fee: {rental.late_fee}.")
        if rental.damage_fee.is_positive:
            lines.append(f"Damage fee: {rental.damage_fee}.")
        lines.append(f"Total: {rental.total_cost}.")
        return self._send("rental_returned", member, "Rental returned", " ".join(lines))

    def notify_rental_overdue(
        self, member: Member, rental: Rental, days_overdue: int
    ) -> NotificationResult:
        return self._send(
            "rental_overdue",
            member,
            f"Rental {rental.id} is overdue",
            f"Hi {member.name}, your rental is {days_overdue} day(s) overdue. "
            f"Late fees so far: {rental.late_fee}.",
        )

    def notify_rental_due_soon(
        self, member: Member, rental: Rental, days_left: int
    ) -> NotificationResult:
        return self._send(
            "rental_due_soon",
            member,
            f"Rental {rental.id} is due soon",
            f"Hi {member.name}, your rental is due back in {days_left} day(s).",
        )

    # --- Reservations ---

    def notify_reservation_created(
        self, member: Member, reservation: Reservation
    ) -> NotificationResult:
        return self._send(
            "reservation_created",
            member,
            "Reservation received",
            f"Hi {member.name}, reservation {reservation.id} for {reservation.period} "
            f"is {reservation.status}.",
        )

    def notify_reservation_confirmed(
        self, member: Member, reservation: Reservation
    ) -> NotificationResult:
        return self._send(
            "reservation_confirmed",
            member,
            "Reservation confirmed",
            f"Hi {member.name}, reservation {reservation.id} for {reservation.period} "
            "is confirmed.",
        )

    def notify_reservation_cancelled(
        self, member: Member, reservation: Reservation
    ) -> NotificationResult:
        reason = reservation.cancellation_reason or "no reason given"
        return self._send(
            "reservation_cancelled",
            member,
            "Reservation cancelled",
            f"Hi {member.name}, reservation {reservation.id} was cancelled ({reason}).",
        )

    def notify_reservation_reminder(
        self, member: Member, reservation: Reservation, days_until: int
    ) -> NotificationResult:
        return self._send(
            "reservation_reminder",
            member,
            "Upcoming reservation",
            f"Hi {member.name}, reservation {reservation.id} starts in {days_until} day(s).",
        )

    # --- Equipment and payments ---

    def notify_equipment_damaged(
        self, member: Member, equipment: Equipment, damage_fee: Money
    ) -> NotificationResult:
        return self._send(
            "equipment_damaged",
            member,
            f"Damage assessed on {equipment.name}",
            f"Hi {member.name}, {equipment.name} came back in {equipment.condition} "
            f"condition. A damage fee of {damage_fee} applies.",
        )

    def notify_payment_received(
        self, member: Member, amount: Money, transaction_id: str
    ) -> NotificationResult:
        return self._send(
            "payment_received",
            member,
            "Payment received",
            f"Hi {member.name}, we received {amount} (transaction {transaction_id}).",
        )

    def notify_payment_failed(
        self, member: Member, amount: Money, reason: str
    ) -> NotificationResult:
        return self._send(
            "payment_failed",
            member,
            "Payment failed",
            f"Hi {member.name}, a payment of {amount} failed: {reason}.",
        )
