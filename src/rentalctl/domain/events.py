"""Domain events published after a use case commits.

Each event names the plugin hook it is dispatched to (``hook_name``) and the
field holding the id of the aggregate it concerns.  :meth:`DomainEvent.payload`
is the JSON-safe keyword set passed to hook implementations.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar

from pydantic import BaseModel, Field

from rentalctl.domain.dates import utc_now


class DomainEvent(BaseModel):
    """Base for all domain events."""

    model_config = {"frozen": True}

    event_type: ClassVar[str] = "DomainEvent"
    hook_name: ClassVar[str] = ""
    aggregate_field: ClassVar[str] = ""

    event_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    occurred_at: datetime = Field(default_factory=utc_now)

    @property
    def aggregate_id(self) -> str:
        return str(getattr(self, self.aggregate_field))

    def payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude={"event_id", "occurred_at"})


# --- Rental events ---


class RentalCreated(DomainEvent):
    event_type: ClassVar[str] = "RentalCreated"
    hook_name: ClassVar[str] = "rental_created"
    aggregate_field: ClassVar[str] = "rental_id"

    rental_id: str
    member_id: str
    equipment_id: str
    start: datetime
    end: datetime
    daily_rate: Decimal
    total_cost: Decimal


class RentalReturned(DomainEvent):
    event_type: ClassVar[str] = "RentalReturned"
    hook_name: ClassVar[str] = "rental_returned"
    aggregate_field: ClassVar[str] = "rental_id"

    rental_id: str
    member_id: str
    equipment_id: str
    returned_at: datetime
    late_fee: Decimal
    damage_fee: Decimal
    total_cost: Decimal


class RentalOverdue(DomainEvent):
    event_type: ClassVar[str] = "RentalOverdue"
    hook_name: ClassVar[str] = "rental_overdue"
    aggregate_field: ClassVar[str] = "rental_id"

    rental_id: str
    member_id: str
    equipment_id: str
    days_overdue: int
    late_fee: Decimal


class RentalExtended(DomainEvent):
    event_type: ClassVar[str] = "RentalExtended"
    hook_name: ClassVar[str] = "rental_extended"
    aggregate_field: ClassVar[str] = "rental_id"

    rental_id: str
    member_id: str
    equipment_id: str
    additional_days: int
    new_end: datetime
    additional_cost: Decimal


class RentalCancelled(DomainEvent):
    event_type: ClassVar[str] = "RentalCancelled"
    hook_name: ClassVar[str] = "rental_cancelled"
    aggregate_field: ClassVar[str] = "rental_id"

    rental_id: str
    member_id: str
    equipment_id: str
    refunded: Decimal


# --- Reservation events ---


class ReservationCreated(DomainEvent):
    event_type: ClassVar[str] = "ReservationCreated"
    hook_name: ClassVar[str] = "reservation_created"
    aggregate_field: ClassVar[str] = "reservation_id"

    reservation_id: str
    member_id: str
    equipment_id: str
    start: datetime
    end: datetime
    status: str


class ReservationConfirmed(DomainEvent):
    event_type: ClassVar[str] = "ReservationConfirmed"
    hook_name: ClassVar[str] = "reservation_confirmed"
    aggregate_field: ClassVar[str] = "reservation_id"

    reservation_id: str
    member_id: str
    equipment_id: str


class ReservationCancelled(DomainEvent):
    event_type: ClassVar[str] = "ReservationCancelled"
    hook_name: ClassVar[str] = "reservation_cancelled"
    aggregate_field: ClassVar[str] = "reservation_id"

    reservation_id: str
    member_id: str
    equipment_id: str
    reason: str | None = None


class ReservationFulfilled(DomainEvent):
    event_type: ClassVar[str] = "ReservationFulfilled"
    hook_name: ClassVar[str] = "reservation_fulfilled"
    aggregate_field: ClassVar[str] = "reservation_id"

    reservation_id: str
    rental_id: str
    member_id: str
    equipment_id: str


class ReservationExpired(DomainEvent):
    event_type: ClassVar[str] = "ReservationExpired"
    hook_name: ClassVar[str] = "reservation_expired"
    aggregate_field: ClassVar[str] = "reservation_id"

    reservation_id: str
    member_id: str
    equipment_id: str


# --- Equipment events ---


class EquipmentDamaged(DomainEvent):
    event_type: ClassVar[str] = "EquipmentDamaged"
    hook_name: ClassVar[str] = "equipment_damaged"
    aggregate_field: ClassVar[str] = "equipment_id"

    equipment_id: str
    rental_id: str
    condition_before: str
    condition_after: str
    damage_fee: Decimal
