"""Tests for DamageAssessment."""

from datetime import UTC, datetime

import pytest

from rentalctl.domain.damage import DamageAssessment
from rentalctl.domain.errors import InvalidInputError
from rentalctl.domain.ids import validate_id
from rentalctl.domain.money import Money
from rentalctl.domain.types import EquipmentCondition

T0 = datetime(2026, 5, 1, tzinfo=UTC)


def _assess(
    before: EquipmentCondition, after: EquipmentCondition, **kwargs: str
) -> DamageAssessment:
    return DamageAssessment.create(
        rental_id="rnt_000000000001",
        equipment_id="eqp_000000000001",
        condition_before=before,
        condition_after=after,
        assessed_by=kwargs.get("assessed_by", "Sam"),
        notes=kwargs.get("notes", ""),
        now=T0,
    )


class TestDamageAssessment:
    def test_fee_from_shared_table(self) -> None:
        a = _assess(EquipmentCondition.EXCELLENT, EquipmentCondition.POOR)
        assert validate_id(a.id, "assessment")
        assert a.damage_fee == Money.of("300.00")
        assert a.degradation_levels == 3
        assert a.has_damage
        assert a.has_condition_degraded

    def test_wear_is_not_damage(self) -> None:
        a = _assess(EquipmentCondition.GOOD, EquipmentCondition.FAIR)
        assert a.has_condition_degraded
        assert not a.has_damage

    def test_improvement(self) -> None:
        a = _assess(EquipmentCondition.FAIR, EquipmentCondition.EXCELLENT)
        assert a.degradation_levels == 0
        assert not a.has_condition_degraded

    def test_requires_assessor(self) -> None:
        with pytest.raises(InvalidInputError):
            _assess(EquipmentCondition.GOOD, EquipmentCondition.GOOD, assessed_by="  ")

    def test_update_notes(self) -> None:
        a = _assess(EquipmentCondition.GOOD, EquipmentCondition.GOOD, notes="ok")
        updated = a.update_notes("  scratched handle ")
        assert updated.notes == "scratched handle"
        assert updated.id == a.id
        assert a.notes == "ok"
