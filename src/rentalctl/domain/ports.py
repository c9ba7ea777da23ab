"""Collaborator ports the engine depends on.

Repositories, the payment gateway, the notifier, and the event publisher are
structural :class:`typing.Protocol` types.  Concrete adapters live in
:mod:`rentalctl.infrastructure` and :mod:`rentalctl.plugins`.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import BaseModel, Field

from rentalctl.domain.money import Money

if TYPE_CHECKING:
    from rentalctl.domain.damage import DamageAssessment
    from rentalctl.domain.dates import DateRange
    from rentalctl.domain.equipment import Equipment
    from rentalctl.domain.events import DomainEvent
    from rentalctl.domain.lifecycle import RentalStatus, ReservationStatus
    from rentalctl.domain.member import Member
    from rentalctl.domain.rental import Rental
    from rentalctl.domain.reservation import Reservation
    from rentalctl.domain.types import MembershipTier


# --- Repositories ---


class EquipmentRepository(Protocol):
    def find_by_id(self, equipment_id: str) -> Equipment | None: ...
    def find_all(self) -> list[Equipment]: ...
    def find_by_category(self, category: str) -> list[Equipment]: ...
    def find_available(self) -> list[Equipment]: ...
    def find_needing_maintenance(self, now: datetime, interval_days: int) -> list[Equipment]: ...
    def save(self, item: Equipment) -> None: ...
    def delete(self, entity_id: str) -> bool: ...
    def exists(self, entity_id: str) -> bool: ...
    def count(self) -> int: ...


class MemberRepository(Protocol):
    def find_by_id(self, member_id: str) -> Member | None: ...
    def find_by_email(self, email: str) -> Member | None: ...
    def find_all(self) -> list[Member]: ...
    def find_by_tier(self, tier: MembershipTier) -> list[Member]: ...
    def find_active(self) -> list[Member]: ...
    def save(self, member: Member) -> None: ...
    def delete(self, entity_id: str) -> bool: ...
    def exists(self, entity_id: str) -> bool: ...
    def count(self) -> int: ...


class RentalRepository(Protocol):
    def find_by_id(self, rental_id: str) -> Rental | None: ...
    def find_all(self) -> list[Rental]: ...
    def find_by_member(self, member_id: str) -> list[Rental]: ...
    def find_by_equipment(self, equipment_id: str) -> list[Rental]: ...
    def find_by_status(self, status: RentalStatus) -> list[Rental]: ...
    def find_live_by_member(self, member_id: str) -> list[Rental]: ...
    def find_overlapping(self, equipment_id: str, period: DateRange) -> list[Rental]: ...
    def find_overdue(self, now: datetime) -> list[Rental]: ...
    def find_ending_between(self, start: datetime, end: datetime) -> list[Rental]: ...
    def save(self, rental: Rental) -> None: ...
    def delete(self, entity_id: str) -> bool: ...
    def exists(self, entity_id: str) -> bool: ...
    def count(self) -> int: ...
    def count_by_status(self, status: RentalStatus) -> int: ...


class ReservationRepository(Protocol):
    def find_by_id(self, reservation_id: str) -> Reservation | None: ...
    def find_all(self) -> list[Reservation]: ...
    def find_by_member(self, member_id: str) -> list[Reservation]: ...
    def find_by_equipment(self, equipment_id: str) -> list[Reservation]: ...
    def find_by_status(self, status: ReservationStatus) -> list[Reservation]: ...
    def find_conflicting(
        self,
        equipment_id: str,
        period: DateRange,
        exclude_id: str | None = None,
    ) -> list[Reservation]: ...
    def find_ready_to_fulfill(self, now: datetime) -> list[Reservation]: ...
    def find_expired(self, now: datetime) -> list[Reservation]: ...
    def find_starting_between(self, start: datetime, end: datetime) -> list[Reservation]: ...
    def save(self, reservation: Reservation) -> None: ...
    def delete(self, entity_id: str) -> bool: ...
    def exists(self, entity_id: str) -> bool: ...
    def count(self) -> int: ...
    def count_by_status(self, status: ReservationStatus) -> int: ...


class DamageAssessmentRepository(Protocol):
    def find_by_id(self, assessment_id: str) -> DamageAssessment | None: ...
    def find_all(self) -> list[DamageAssessment]: ...
    def find_by_rental(self, rental_id: str) -> list[DamageAssessment]: ...
    def save(self, assessment: DamageAssessment) -> None: ...
    def count(self) -> int: ...


# --- Payment ---


class PaymentStatus(StrEnum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    PENDING = "PENDING"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class PaymentMethod(StrEnum):
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    CASH = "CASH"
    BANK_TRANSFER = "BANK_TRANSFER"


class PaymentResult(BaseModel):
    """Outcome of a gateway call."""

    model_config = {"frozen": True}

    transaction_id: str
    status: PaymentStatus
    amount: Money
    processed_at: datetime
    error_message: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status is PaymentStatus.SUCCESS

    @property
    def is_hold(self) -> bool:
        """An authorization that can later be captured or cancelled."""
        return self.status in (PaymentStatus.SUCCESS, PaymentStatus.PENDING)


class PaymentGateway(Protocol):
    def process_payment(
        self,
        *,
        member_id: str,
        amount: Money,
        method: PaymentMethod,
        description: str,
        rental_id: str | None = None,
    ) -> PaymentResult: ...

    def authorize_payment(
        self,
        *,
        member_id: str,
        amount: Money,
        method: PaymentMethod,
    ) -> PaymentResult: ...

    def capture_payment(self, authorization_id: str, amount: Money) -> PaymentResult: ...

    def cancel_authorization(self, authorization_id: str) -> PaymentResult: ...

    def cancel_payment(self, transaction_id: str) -> PaymentResult: ...

    def process_refund(self, transaction_id: str, amount: Money, reason: str) -> PaymentResult: ...

    def get_payment_details(self, transaction_id: str) -> PaymentResult | None: ...


# --- Notification ---


class NotificationChannel(StrEnum):
    EMAIL = "EMAIL"
    SMS = "SMS"
    PUSH = "PUSH"
    IN_APP = "IN_APP"


class NotificationResult(BaseModel):
    model_config = {"frozen": True}

    success: bool
    channel: NotificationChannel
    sent_at: datetime
    message_id: str | None = None
    error_message: str | None = None


class Notifier(Protocol):
    """Fire-and-collect notifications. Callers never treat a failure as fatal."""

    def notify_rental_created(
        self, member: Member, rental: Rental, equipment: Equipment
    ) -> NotificationResult: ...

    def notify_rental_returned(
        self, member: Member, rental: Rental, equipment: Equipment
    ) -> NotificationResult: ...

    def notify_rental_overdue(
        self, member: Member, rental: Rental, days_overdue: int
    ) -> NotificationResult: ...

    def notify_rental_due_soon(
        self, member: Member, rental: Rental, days_left: int
    ) -> NotificationResult: ...

    def notify_reservation_created(
        self, member: Member, reservation: Reservation
    ) -> NotificationResult: ...

    def notify_reservation_confirmed(
        self, member: Member, reservation: Reservation
    ) -> NotificationResult: ...

    def notify_reservation_cancelled(
        self, member: Member, reservation: Reservation
    ) -> NotificationResult: ...

    def notify_reservation_reminder(
        self, member: Member, reservation: Reservation, days_until: int
    ) -> NotificationResult: ...

    def notify_equipment_damaged(
        self, member: Member, equipment: Equipment, damage_fee: Money
    ) -> NotificationResult: ...

    def notify_payment_received(
        self, member: Member, amount: Money, transaction_id: str
    ) -> NotificationResult: ...

    def notify_payment_failed(
        self, member: Member, amount: Money, reason: str
    ) -> NotificationResult: ...


# --- Events ---


class EventPublisher(Protocol):
    def publish(self, event: DomainEvent) -> int: ...
