"""DamageAssessment — fee record derived from condition degradation."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from rentalctl.domain import fees
from rentalctl.domain.dates import ensure_utc
from rentalctl.domain.errors import InvalidInputError
from rentalctl.domain.ids import generate_id
from rentalctl.domain.money import Money
from rentalctl.domain.types import EquipmentCondition


class DamageAssessment(BaseModel):
    """Immutable assessment of a returned rental's equipment."""

    model_config = {"frozen": True}

    id: str
    rental_id: str
    equipment_id: str
    condition_before: EquipmentCondition
    condition_after: EquipmentCondition
    damage_fee: Money
    notes: str = ""
    assessed_by: str
    assessed_at: datetime

    @classmethod
    def create(
        cls,
        *,
        rental_id: str,
        equipment_id: str,
        condition_before: EquipmentCondition,
        condition_after: EquipmentCondition,
        assessed_by: str,
        now: datetime,
        notes: str = "",
        assessment_id: str | None = None,
    ) -> DamageAssessment:
        assessor = assessed_by.strip()
        if not assessor:
            raise InvalidInputError("Assessor name cannot be empty")
        return cls(
            id=assessment_id or generate_id("assessment"),
            rental_id=rental_id,
            equipment_id=equipment_id,
            condition_before=condition_before,
            condition_after=condition_after,
            damage_fee=fees.damage_fee(condition_before, condition_after),
            notes=notes.strip(),
            assessed_by=assessor,
            assessed_at=ensure_utc(now),
        )

    @property
    def degradation_levels(self) -> int:
        return fees.degradation_levels(self.condition_before, self.condition_after)

    @property
    def has_damage(self) -> bool:
        return self.damage_fee.is_positive

    @property
    def has_condition_degraded(self) -> bool:
        return self.condition_after.severity > self.condition_before.severity

    def update_notes(self, notes: str) -> DamageAssessment:
        return self.model_copy(update={"notes": notes.strip()})
