"""Equipment — the resource being scheduled."""

from __future__ import annotations

from datetime import datetime, timedelta

from pydantic import BaseModel

from rentalctl.domain.dates import ensure_utc
from rentalctl.domain.errors import (
    EquipmentAlreadyRentedError,
    EquipmentConditionUnacceptableError,
    EquipmentNotAvailableError,
    EquipmentNotRentedError,
    InvalidInputError,
)
from rentalctl.domain.ids import generate_id
from rentalctl.domain.money import Money
from rentalctl.domain.types import EquipmentCondition

DEFAULT_MAINTENANCE_INTERVAL_DAYS = 90


class Equipment(BaseModel):
    """Immutable equipment snapshot.

    ``is_available`` is true only while the condition is rentable and the
    unit is not out on a rental.
    """

    model_config = {"frozen": True}

    id: str
    name: str
    description: str = ""
    category: str
    daily_rate: Money
    condition: EquipmentCondition
    is_available: bool
    current_rental_id: str | None = None
    purchase_date: datetime
    last_maintenance_date: datetime | None = None

    @classmethod
    def create(
        cls,
        *,
        name: str,
        category: str,
        daily_rate: Money,
        purchase_date: datetime,
        condition: EquipmentCondition = EquipmentCondition.EXCELLENT,
        description: str = "",
        equipment_id: str | None = None,
    ) -> Equipment:
        if not name.strip():
            raise InvalidInputError("Equipment name cannot be empty")
        if not category.strip():
            raise InvalidInputError("Equipment category cannot be empty")
        if not daily_rate.is_positive:
            raise InvalidInputError(
                "Daily rate must be greater than zero", daily_rate=str(daily_rate)
            )
        return cls(
            id=equipment_id or generate_id("equipment"),
            name=name.strip(),
            description=description.strip(),
            category=category.strip(),
            daily_rate=daily_rate,
            condition=condition,
            is_available=condition.is_rentable,
            purchase_date=ensure_utc(purchase_date),
        )

    # --- Transitions ---

    def mark_as_rented(self, rental_id: str) -> Equipment:
        if self.current_rental_id is not None:
            raise EquipmentAlreadyRentedError(self.id, self.current_rental_id)
        if not self.condition.is_rentable:
            raise EquipmentConditionUnacceptableError(self.id, self.condition)
        if not self.is_available:
            raise EquipmentNotAvailableError(self.id)
        return self.model_copy(update={"is_available": False, "current_rental_id": rental_id})

    def mark_as_returned(self, condition: EquipmentCondition) -> Equipment:
        """Record the post-rental condition and release the unit."""
        if self.current_rental_id is None:
            raise EquipmentNotRentedError(self.id)
        return self.model_copy(
            update={
                "condition": condition,
                "is_available": condition.is_rentable,
                "current_rental_id": None,
            }
        )

    def update_condition(self, condition: EquipmentCondition) -> Equipment:
        """Set a new condition.

        An unrentable condition always forces unavailability; a rentable one
        makes the unit available again unless it is out on a rental.
        """
        available = condition.is_rentable and self.current_rental_id is None
        return self.model_copy(update={"condition": condition, "is_available": available})

    def record_maintenance(self, at: datetime) -> Equipment:
        return self.model_copy(update={"last_maintenance_date": ensure_utc(at)})

    def update_daily_rate(self, rate: Money) -> Equipment:
        if not rate.is_positive:
            raise InvalidInputError("Daily rate must be greater than zero", daily_rate=str(rate))
        return self.model_copy(update={"daily_rate": rate})

    # --- Queries ---

    @property
    def is_rentable(self) -> bool:
        return self.condition.is_rentable

    @property
    def needs_repair(self) -> bool:
        return self.condition.needs_repair

    def next_maintenance_due(
        self, interval_days: int = DEFAULT_MAINTENANCE_INTERVAL_DAYS
    ) -> datetime:
        """Last maintenance (or purchase, if never serviced) plus the interval."""
        baseline = self.last_maintenance_date or self.purchase_date
        return baseline + timedelta(days=interval_days)

    def needs_maintenance(
        self,
        now: datetime,
        interval_days: int = DEFAULT_MAINTENANCE_INTERVAL_DAYS,
    ) -> bool:
        return ensure_utc(now) > self.next_maintenance_due(interval_days)

    def calculate_rental_cost(self, days: int) -> Money:
        if days <= 0:
            raise InvalidInputError("Rental days must be greater than zero", days=days)
        return self.daily_rate.multiply(days)
