"""Damage assessment persistence."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select

from rentalctl.domain.damage import DamageAssessment
from rentalctl.domain.dates import from_iso, to_iso
from rentalctl.domain.money import Money
from rentalctl.domain.types import EquipmentCondition
from rentalctl.infrastructure.database.schema import damage_assessments
from rentalctl.infrastructure.repositories._base import SqlRepository


def _to_entity(row: Any) -> DamageAssessment:
    return DamageAssessment(
        id=row.id,
        rental_id=row.rental_id,
        equipment_id=row.equipment_id,
        condition_before=EquipmentCondition(row.condition_before),
        condition_after=EquipmentCondition(row.condition_after),
        damage_fee=Money(row.damage_fee_cents),
        notes=row.notes,
        assessed_by=row.assessed_by,
        assessed_at=from_iso(row.assessed_at),
    )


class SqlDamageAssessmentRepository(SqlRepository):
    table = damage_assessments

    def find_by_id(self, assessment_id: str) -> DamageAssessment | None:
        row = self._fetch_one(assessment_id)
        return _to_entity(row) if row is not None else None

    def find_all(self) -> list[DamageAssessment]:
        rows = self._conn.execute(
            select(damage_assessments).order_by(damage_assessments.c.assessed_at)
        ).fetchall()
        return [_to_entity(r) for r in rows]

    def find_by_rental(self, rental_id: str) -> list[DamageAssessment]:
        rows = self._conn.execute(
            select(damage_assessments)
            .where(damage_assessments.c.rental_id == rental_id)
            .order_by(damage_assessments.c.assessed_at)
        ).fetchall()
        return [_to_entity(r) for r in rows]

    def save(self, assessment: DamageAssessment) -> None:
        self._upsert(
            {
                "id": assessment.id,
                "rental_id": assessment.rental_id,
                "equipment_id": assessment.equipment_id,
                "condition_before": str(assessment.condition_before),
                "condition_after": str(assessment.condition_after),
                "damage_fee_cents": assessment.damage_fee.cents,
                "notes": assessment.notes,
                "assessed_by": assessment.assessed_by,
                "assessed_at": to_iso(assessment.assessed_at),
            }
        )
