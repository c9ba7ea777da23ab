"""Domain error taxonomy.

Every error raised by an entity or a use case is a :class:`DomainError`
subclass carrying a stable upper-snake ``code``, an :class:`ErrorKind`
category, and a ``detail`` dict with enough context (ids, current state)
to render a precise outcome.  The service layer converts these into
``ServiceResult(ok=False, ...)``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, ClassVar


class ErrorKind(StrEnum):
    """Error category. Callers map these to outcome classes (404, 409, ...)."""

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    ELIGIBILITY = "eligibility"
    VALIDATION = "validation"
    PAYMENT = "payment"


class DomainError(Exception):
    """Base class for all domain errors."""

    code: ClassVar[str] = "DOMAIN_ERROR"
    kind: ClassVar[ErrorKind] = ErrorKind.VALIDATION

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail: dict[str, Any] = detail

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "kind": str(self.kind),
            "message": self.message,
            "detail": dict(self.detail),
        }


# --- Validation ---


class InvalidInputError(DomainError):
    """Malformed input: blank names, non-positive amounts or durations."""

    code = "INVALID_INPUT"
    kind = ErrorKind.VALIDATION


class InvalidMoneyError(InvalidInputError):
    code = "INVALID_MONEY"


class InvalidDateRangeError(InvalidInputError):
    code = "INVALID_DATE_RANGE"


# --- Not found ---


class NotFoundError(DomainError):
    kind = ErrorKind.NOT_FOUND
    entity: ClassVar[str] = "entity"

    def __init__(self, entity_id: str) -> None:
        super().__init__(f"{self.entity.capitalize()} not found: {entity_id}", id=entity_id)
        self.entity_id = entity_id


class EquipmentNotFoundError(NotFoundError):
    code = "EQUIPMENT_NOT_FOUND"
    entity = "equipment"


class MemberNotFoundError(NotFoundError):
    code = "MEMBER_NOT_FOUND"
    entity = "member"


class RentalNotFoundError(NotFoundError):
    code = "RENTAL_NOT_FOUND"
    entity = "rental"


class ReservationNotFoundError(NotFoundError):
    code = "RESERVATION_NOT_FOUND"
    entity = "reservation"


class AssessmentNotFoundError(NotFoundError):
    code = "ASSESSMENT_NOT_FOUND"
    entity = "damage assessment"


# --- State conflict ---


class ConflictError(DomainError):
    kind = ErrorKind.CONFLICT


class InvalidTransitionError(ConflictError):
    """An entity was asked to move to a state its current state cannot reach."""

    code = "INVALID_TRANSITION"

    def __init__(
        self,
        entity: str,
        entity_id: str,
        current: str,
        target: str,
        reason: str | None = None,
    ) -> None:
        message = f"Cannot move {entity} {entity_id} from {current} to {target}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message,
            entity=entity,
            id=entity_id,
            current=str(current),
            target=str(target),
        )


class RentalAlreadyReturnedError(InvalidTransitionError):
    code = "RENTAL_ALREADY_RETURNED"

    def __init__(self, rental_id: str) -> None:
        super().__init__("rental", rental_id, "RETURNED", "RETURNED", "already returned")


class ReservationAlreadyCancelledError(InvalidTransitionError):
    code = "RESERVATION_ALREADY_CANCELLED"

    def __init__(self, reservation_id: str) -> None:
        super().__init__(
            "reservation", reservation_id, "CANCELLED", "CANCELLED", "already cancelled"
        )


class EquipmentNotAvailableError(ConflictError):
    code = "EQUIPMENT_NOT_AVAILABLE"

    def __init__(self, equipment_id: str, reason: str = "not available") -> None:
        super().__init__(f"Equipment {equipment_id} is {reason}", id=equipment_id)


class EquipmentAlreadyRentedError(ConflictError):
    code = "EQUIPMENT_ALREADY_RENTED"

    def __init__(self, equipment_id: str, rental_id: str) -> None:
        super().__init__(
            f"Equipment {equipment_id} is already rented under {rental_id}",
            id=equipment_id,
            rental_id=rental_id,
        )


class EquipmentConditionUnacceptableError(ConflictError):
    code = "EQUIPMENT_CONDITION_UNACCEPTABLE"

    def __init__(self, equipment_id: str, condition: str) -> None:
        super().__init__(
            f"Equipment {equipment_id} is in {condition} condition and cannot be rented",
            id=equipment_id,
            condition=str(condition),
        )


class EquipmentNotRentedError(ConflictError):
    code = "EQUIPMENT_NOT_RENTED"

    def __init__(self, equipment_id: str) -> None:
        super().__init__(f"Equipment {equipment_id} is not out on a rental", id=equipment_id)


class ScheduleConflictError(ConflictError):
    """The requested window overlaps a live reservation or rental."""

    code = "SCHEDULE_CONFLICT"

    def __init__(self, equipment_id: str, conflicts: list[str]) -> None:
        super().__init__(
            f"Equipment {equipment_id} is already booked for an overlapping period",
            id=equipment_id,
            conflicts=conflicts,
        )


class MemberStateError(ConflictError):
    code = "MEMBER_STATE"


class DuplicateEmailError(ConflictError):
    code = "DUPLICATE_EMAIL"

    def __init__(self, email: str) -> None:
        super().__init__(f"A member with email {email} already exists", email=email)


# --- Eligibility (about the actor, not the resource) ---


class EligibilityError(DomainError):
    kind = ErrorKind.ELIGIBILITY


class MemberInactiveError(EligibilityError):
    code = "MEMBER_INACTIVE"

    def __init__(self, member_id: str) -> None:
        super().__init__(f"Member {member_id} is not active", member_id=member_id)


class RentalLimitExceededError(EligibilityError):
    code = "RENTAL_LIMIT_EXCEEDED"

    def __init__(self, member_id: str, limit: int) -> None:
        super().__init__(
            f"Member {member_id} has reached the limit of {limit} concurrent rentals",
            member_id=member_id,
            limit=limit,
        )


class MemberHasOverdueRentalsError(EligibilityError):
    code = "MEMBER_HAS_OVERDUE_RENTALS"

    def __init__(self, member_id: str, count: int) -> None:
        super().__init__(
            f"Member {member_id} has {count} overdue rental(s)",
            member_id=member_id,
            overdue_count=count,
        )


class RentalDurationExceededError(EligibilityError):
    code = "RENTAL_DURATION_EXCEEDED"

    def __init__(self, member_id: str, days: int, max_days: int, tier: str) -> None:
        super().__init__(
            f"{days} days exceeds the {max_days}-day maximum for {tier} members",
            member_id=member_id,
            days=days,
            max_days=max_days,
            tier=str(tier),
        )


# --- Payment ---


class PaymentFailedError(DomainError):
    code = "PAYMENT_FAILED"
    kind = ErrorKind.PAYMENT

    def __init__(
        self,
        reason: str,
        *,
        member_id: str,
        amount: str,
        transaction_id: str | None = None,
        status: str | None = None,
    ) -> None:
        super().__init__(
            f"Payment failed: {reason}",
            member_id=member_id,
            amount=amount,
            transaction_id=transaction_id,
            status=status,
        )
        self.reason = reason
