"""Rental — equipment currently or formerly in a member's possession.

State machine (see :data:`RENTAL_TRANSITIONS`): ACTIVE moves to OVERDUE,
RETURNED or CANCELLED; OVERDUE moves to RETURNED or CANCELLED, or back to
ACTIVE when extended.  RETURNED and CANCELLED are terminal.

Every transition returns a new snapshot.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from rentalctl.domain import fees
from rentalctl.domain.dates import DateRange, ensure_utc
from rentalctl.domain.errors import InvalidInputError, RentalAlreadyReturnedError
from rentalctl.domain.ids import generate_id
from rentalctl.domain.lifecycle import (
    LIVE_RENTAL_STATUSES,
    RENTAL_TRANSITIONS,
    RentalStatus,
    require_transition,
)
from rentalctl.domain.money import Money
from rentalctl.domain.types import EquipmentCondition


class Rental(BaseModel):
    """Immutable rental snapshot with cost and fee accounting."""

    model_config = {"frozen": True}

    id: str
    equipment_id: str
    member_id: str
    period: DateRange
    status: RentalStatus = RentalStatus.ACTIVE
    base_cost: Money
    total_cost: Money
    late_fee: Money = Money(0)
    damage_fee: Money = Money(0)
    condition_at_start: EquipmentCondition
    condition_at_return: EquipmentCondition | None = None
    created_at: datetime
    returned_at: datetime | None = None
    cancelled_at: datetime | None = None
    transaction_id: str | None = None

    @classmethod
    def create(
        cls,
        *,
        equipment_id: str,
        member_id: str,
        period: DateRange,
        base_cost: Money,
        condition_at_start: EquipmentCondition,
        now: datetime,
        transaction_id: str | None = None,
        rental_id: str | None = None,
    ) -> Rental:
        if not base_cost.is_positive:
            raise InvalidInputError("Rental base cost must be greater than zero")
        return cls(
            id=rental_id or generate_id("rental"),
            equipment_id=equipment_id,
            member_id=member_id,
            period=period,
            base_cost=base_cost,
            total_cost=base_cost,
            condition_at_start=condition_at_start,
            created_at=ensure_utc(now),
            transaction_id=transaction_id,
        )

    def _require(self, target: RentalStatus) -> None:
        require_transition("rental", self.id, self.status, target, RENTAL_TRANSITIONS)

    # --- Transitions ---

    def mark_as_overdue(self, daily_late_fee_rate: Money, now: datetime) -> Rental:
        self._require(RentalStatus.OVERDUE)
        if not self.period.has_ended(now):
            raise InvalidInputError(
                f"Rental {self.id} cannot be overdue before its period ends",
                id=self.id,
            )
        fee = fees.late_fee(daily_late_fee_rate, self.days_overdue(now))
        return self.model_copy(
            update={
                "status": RentalStatus.OVERDUE,
                "late_fee": fee,
                "total_cost": self.base_cost + fee,
            }
        )

    def return_rental(
        self,
        condition_at_return: EquipmentCondition,
        damage_fee: Money,
        now: datetime,
        *,
        fallback_daily_rate: Money = fees.FALLBACK_LATE_FEE_RATE,
    ) -> Rental:
        """Close the rental.

        A still-ACTIVE rental returned after its period accrues the late fee
        inline at *fallback_daily_rate*, so no prior overdue sweep is needed.
        """
        if self.status is RentalStatus.RETURNED:
            raise RentalAlreadyReturnedError(self.id)
        self._require(RentalStatus.RETURNED)
        fee = self.late_fee
        if self.status is RentalStatus.ACTIVE and self.period.has_ended(now):
            fee = fees.late_fee(fallback_daily_rate, self.days_overdue(now))
        return self.model_copy(
            update={
                "status": RentalStatus.RETURNED,
                "late_fee": fee,
                "damage_fee": damage_fee,
                "total_cost": self.base_cost + fee + damage_fee,
                "condition_at_return": condition_at_return,
                "returned_at": ensure_utc(now),
            }
        )

    def extend_period(self, additional_days: int, additional_cost: Money) -> Rental:
        """Lengthen the rental. Extending an OVERDUE rental forgives its late fee."""
        if self.status not in LIVE_RENTAL_STATUSES:
            self._require(RentalStatus.ACTIVE)
        if additional_days <= 0:
            raise InvalidInputError(
                "Additional days must be greater than zero", days=additional_days
            )
        base = self.base_cost + additional_cost
        update: dict[str, object] = {
            "period": self.period.extend_by(additional_days),
            "base_cost": base,
            "total_cost": base + self.late_fee,
        }
        if self.status is RentalStatus.OVERDUE:
            update.update(status=RentalStatus.ACTIVE, late_fee=Money.zero(), total_cost=base)
        return self.model_copy(update=update)

    def cancel(self, now: datetime) -> Rental:
        """Cancel; a cancelled rental is never charged."""
        self._require(RentalStatus.CANCELLED)
        return self.model_copy(
            update={
                "status": RentalStatus.CANCELLED,
                "total_cost": Money.zero(),
                "cancelled_at": ensure_utc(now),
            }
        )

    # --- Queries ---

    def is_overdue(self, now: datetime) -> bool:
        """True when an ACTIVE rental has run past its period and needs the transition."""
        return self.status is RentalStatus.ACTIVE and self.period.has_ended(now)

    @property
    def is_live(self) -> bool:
        return self.status in LIVE_RENTAL_STATUSES

    def days_overdue(self, now: datetime) -> int:
        if not self.period.has_ended(now):
            return 0
        return abs(self.period.days_until_end(now))

    @property
    def duration_days(self) -> int:
        return self.period.days

    def calculate_damage_fee(self, condition_at_return: EquipmentCondition) -> Money:
        return fees.damage_fee(self.condition_at_start, condition_at_return)
