"""DamageService — post-return condition assessments.

An assessment records what happened to the equipment; it never charges the
member or changes the equipment.  Return-time fees are settled by
:meth:`RentalService.return_rental`.
"""

from __future__ import annotations

from datetime import datetime

import structlog

from rentalctl.domain.damage import DamageAssessment
from rentalctl.domain.errors import AssessmentNotFoundError, DomainError, InvalidTransitionError
from rentalctl.domain.events import EquipmentDamaged
from rentalctl.domain.lifecycle import RentalStatus
from rentalctl.domain.money import Money
from rentalctl.domain.types import EquipmentCondition
from rentalctl.services._helpers import money_str, parse_choice, resolve_now, snapshot
from rentalctl.services.base import BaseService
from rentalctl.services.result import ServiceResult
from rentalctl.services.telemetry import traced

log = structlog.get_logger(__name__)


class DamageService(BaseService):
    """Damage assessment use cases."""

    @traced
    def assess_damage(
        self,
        rental_id: str,
        *,
        condition_after: EquipmentCondition | str,
        assessed_by: str,
        notes: str = "",
        now: datetime | None = None,
    ) -> ServiceResult:
        """Record the equipment's condition after a returned rental.

        The condition before is the rental's ``condition_at_start``.
        """
        op = "assess_damage"
        warnings: list[str] = []
        at = resolve_now(now)
        try:
            after = parse_choice(EquipmentCondition, condition_after, field="condition")
            with self._store.read() as uow:
                equipment_id = self._rental(uow, rental_id).equipment_id
            with self._store.transaction(equipment_id=equipment_id) as uow:
                rental = self._rental(uow, rental_id)
                if rental.status is not RentalStatus.RETURNED:
                    raise InvalidTransitionError(
                        "rental",
                        rental.id,
                        rental.status,
                        RentalStatus.RETURNED,
                        "damage can only be assessed after return",
                    )
                equipment = self._equipment(uow, rental.equipment_id)
                member = self._member(uow, rental.member_id)
                assessment = DamageAssessment.create(
                    rental_id=rental.id,
                    equipment_id=rental.equipment_id,
                    condition_before=rental.condition_at_start,
                    condition_after=after,
                    assessed_by=assessed_by,
                    notes=notes,
                    now=at,
                )
                uow.assessments.save(assessment)
        except DomainError as exc:
            return ServiceResult.failure(op, exc, warnings)

        log.info(
            "damage.assessed",
            assessment_id=assessment.id,
            rental_id=rental_id,
            levels=assessment.degradation_levels,
            fee=money_str(assessment.damage_fee),
        )
        if assessment.has_damage:
            self._notify(
                warnings,
                self._store.notifier.notify_equipment_damaged,
                member,
                equipment,
                assessment.damage_fee,
            )
            self._dispatch_event(
                EquipmentDamaged(
                    equipment_id=assessment.equipment_id,
                    rental_id=rental_id,
                    condition_before=str(assessment.condition_before),
                    condition_after=str(assessment.condition_after),
                    damage_fee=assessment.damage_fee.amount,
                ),
                warnings,
            )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "assessment": snapshot(assessment),
                "has_damage": assessment.has_damage,
                "degradation_levels": assessment.degradation_levels,
            },
            warnings=warnings,
        )

    @traced
    def get_assessment(self, assessment_id: str) -> ServiceResult:
        op = "get_assessment"
        with self._store.read() as uow:
            assessment = uow.assessments.find_by_id(assessment_id)
        if assessment is None:
            return ServiceResult.failure(op, AssessmentNotFoundError(assessment_id))
        return ServiceResult(ok=True, op=op, data={"assessment": snapshot(assessment)})

    @traced
    def list_assessments(self, *, rental_id: str | None = None) -> ServiceResult:
        with self._store.read() as uow:
            if rental_id is None:
                items = uow.assessments.find_all()
            else:
                items = uow.assessments.find_by_rental(rental_id)
        return ServiceResult(
            ok=True,
            op="list_assessments",
            data={
                "items": [snapshot(a) for a in items],
                "count": len(items),
                "total_fees": money_str(sum((a.damage_fee for a in items), Money.zero())),
            },
        )

    @traced
    def update_notes(self, assessment_id: str, notes: str) -> ServiceResult:
        op = "update_assessment_notes"
        with self._store.transaction() as uow:
            assessment = uow.assessments.find_by_id(assessment_id)
            if assessment is not None:
                assessment = assessment.update_notes(notes)
                uow.assessments.save(assessment)
        if assessment is None:
            return ServiceResult.failure(op, AssessmentNotFoundError(assessment_id))
        return ServiceResult(ok=True, op=op, data={"assessment": snapshot(assessment)})

