"""EquipmentService — inventory registration, condition and maintenance."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import structlog

from rentalctl.domain.dates import to_iso
from rentalctl.domain.equipment import Equipment
from rentalctl.domain.errors import DomainError
from rentalctl.domain.money import Money
from rentalctl.domain.types import EquipmentCondition
from rentalctl.services._helpers import (
    as_money,
    money_str,
    parse_choice,
    resolve_now,
    snapshot,
)
from rentalctl.services.base import BaseService
from rentalctl.services.result import ServiceResult
from rentalctl.services.telemetry import traced

log = structlog.get_logger(__name__)


class EquipmentService(BaseService):
    """Registers equipment and maintains its condition, rate and service history."""

    @traced
    def register_equipment(
        self,
        *,
        name: str,
        category: str,
        daily_rate: Money | str | Decimal,
        condition: EquipmentCondition | str = EquipmentCondition.EXCELLENT,
        description: str = "",
        purchase_date: datetime | None = None,
    ) -> ServiceResult:
        op = "register_equipment"
        try:
            equipment = Equipment.create(
                name=name,
                category=category,
                daily_rate=as_money(daily_rate),
                condition=parse_choice(EquipmentCondition, condition, field="condition"),
                description=description,
                purchase_date=resolve_now(purchase_date),
            )
            with self._store.transaction() as uow:
                uow.equipment.save(equipment)
        except DomainError as exc:
            return ServiceResult.failure(op, exc)

        log.info("equipment.registered", equipment_id=equipment.id, category=equipment.category)
        return ServiceResult(ok=True, op=op, data={"equipment": snapshot(equipment)})

    @traced
    def get_equipment(self, equipment_id: str) -> ServiceResult:
        op = "get_equipment"
        try:
            with self._store.read() as uow:
                equipment = self._equipment(uow, equipment_id)
        except DomainError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"equipment": snapshot(equipment)})

    @traced
    def list_equipment(
        self,
        *,
        category: str | None = None,
        available_only: bool = False,
    ) -> ServiceResult:
        with self._store.read() as uow:
            if category is not None:
                items = uow.equipment.find_by_category(category)
            elif available_only:
                items = uow.equipment.find_available()
            else:
                items = uow.equipment.find_all()
        if category is not None and available_only:
            items = [e for e in items if e.is_available]
        return ServiceResult(
            ok=True,
            op="list_equipment",
            data={"items": [snapshot(e) for e in items], "count": len(items)},
        )

    @traced
    def update_condition(
        self, equipment_id: str, condition: EquipmentCondition | str
    ) -> ServiceResult:
        """Set a new condition; unrentable conditions take the unit out of service."""
        op = "update_condition"
        warnings: list[str] = []
        try:
            new_condition = parse_choice(EquipmentCondition, condition, field="condition")
            with self._store.transaction(equipment_id=equipment_id) as uow:
                before = self._equipment(uow, equipment_id)
                equipment = before.update_condition(new_condition)
                uow.equipment.save(equipment)
        except DomainError as exc:
            return ServiceResult.failure(op, exc)

        if equipment.current_rental_id is not None and not new_condition.is_rentable:
            warnings.append(
                f"Equipment {equipment_id} is out on rental {equipment.current_rental_id}"
            )
        log.info(
            "equipment.condition_updated",
            equipment_id=equipment_id,
            before=str(before.condition),
            after=str(new_condition),
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={"equipment": snapshot(equipment), "previous_condition": str(before.condition)},
            warnings=warnings,
        )

    @traced
    def record_maintenance(
        self,
        equipment_id: str,
        *,
        condition: EquipmentCondition | str | None = None,
        now: datetime | None = None,
    ) -> ServiceResult:
        """Log a service visit, optionally with the condition it left the unit in."""
        op = "record_maintenance"
        at = resolve_now(now)
        try:
            new_condition = (
                parse_choice(EquipmentCondition, condition, field="condition")
                if condition is not None
                else None
            )
            with self._store.transaction(equipment_id=equipment_id) as uow:
                equipment = self._equipment(uow, equipment_id).record_maintenance(at)
                if new_condition is not None:
                    equipment = equipment.update_condition(new_condition)
                uow.equipment.save(equipment)
        except DomainError as exc:
            return ServiceResult.failure(op, exc)

        interval = self._store.settings.maintenance.interval_days
        log.info("equipment.maintained", equipment_id=equipment_id)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "equipment": snapshot(equipment),
                "next_maintenance_due": to_iso(equipment.next_maintenance_due(interval)),
            },
        )

    @traced
    def update_daily_rate(self, equipment_id: str, rate: Money | str | Decimal) -> ServiceResult:
        """Change the rate for future rentals; existing rentals keep their cost."""
        op = "update_daily_rate"
        try:
            new_rate = as_money(rate)
            with self._store.transaction(equipment_id=equipment_id) as uow:
                before = self._equipment(uow, equipment_id)
                equipment = before.update_daily_rate(new_rate)
                uow.equipment.save(equipment)
        except DomainError as exc:
            return ServiceResult.failure(op, exc)

        log.info(
            "equipment.rate_updated",
            equipment_id=equipment_id,
            before=money_str(before.daily_rate),
            after=money_str(new_rate),
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={"equipment": snapshot(equipment), "previous_rate": money_str(before.daily_rate)},
        )

    @traced
    def maintenance_schedule(
        self,
        *,
        due_only: bool = False,
        now: datetime | None = None,
    ) -> ServiceResult:
        """Next service date per unit, soonest first, with overdue units flagged."""
        at = resolve_now(now)
        interval = self._store.settings.maintenance.interval_days
        with self._store.read() as uow:
            if due_only:
                items = uow.equipment.find_needing_maintenance(at, interval)
            else:
                items = uow.equipment.find_all()

        schedule = sorted(
            (
                {
                    "equipment_id": e.id,
                    "name": e.name,
                    "condition": str(e.condition),
                    "last_maintenance_date": (
                        to_iso(e.last_maintenance_date) if e.last_maintenance_date else None
                    ),
                    "next_due": to_iso(e.next_maintenance_due(interval)),
                    "overdue": e.needs_maintenance(at, interval),
                }
                for e in items
            ),
            key=lambda row: row["next_due"],
        )
        return ServiceResult(
            ok=True,
            op="maintenance_schedule",
            data={
                "items": schedule,
                "count": len(schedule),
                "overdue": sum(1 for row in schedule if row["overdue"]),
                "interval_days": interval,
            },
        )
