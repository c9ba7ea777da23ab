"""Equipment persistence."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import select

from rentalctl.domain.dates import from_iso, to_iso
from rentalctl.domain.equipment import Equipment
from rentalctl.domain.money import Money
from rentalctl.domain.types import EquipmentCondition
from rentalctl.infrastructure.database.schema import equipment
from rentalctl.infrastructure.repositories._base import SqlRepository, dt_or_none, iso_or_none


def _to_entity(row: Any) -> Equipment:
    return Equipment(
        id=row.id,
        name=row.name,
        description=row.description,
        category=row.category,
        daily_rate=Money(row.daily_rate_cents),
        condition=EquipmentCondition(row.condition),
        is_available=bool(row.is_available),
        current_rental_id=row.current_rental_id,
        purchase_date=from_iso(row.purchase_date),
        last_maintenance_date=dt_or_none(row.last_maintenance_date),
    )


class SqlEquipmentRepository(SqlRepository):
    table = equipment

    def find_by_id(self, equipment_id: str) -> Equipment | None:
        row = self._fetch_one(equipment_id)
        return _to_entity(row) if row is not None else None

    def find_all(self) -> list[Equipment]:
        rows = self._conn.execute(select(equipment).order_by(equipment.c.name)).fetchall()
        return [_to_entity(r) for r in rows]

    def find_by_category(self, category: str) -> list[Equipment]:
        rows = self._conn.execute(
            select(equipment).where(equipment.c.category == category).order_by(equipment.c.name)
        ).fetchall()
        return [_to_entity(r) for r in rows]

    def find_available(self) -> list[Equipment]:
        rows = self._conn.execute(
            select(equipment).where(equipment.c.is_available == 1).order_by(equipment.c.name)
        ).fetchall()
        return [_to_entity(r) for r in rows]

    def find_needing_maintenance(self, now: datetime, interval_days: int) -> list[Equipment]:
        cutoff = to_iso(now - timedelta(days=interval_days))
        stmt = select(equipment).where(
            (equipment.c.last_maintenance_date < cutoff)
            | (
                equipment.c.last_maintenance_date.is_(None)
                & (equipment.c.purchase_date < cutoff)
            )
        )
        rows = self._conn.execute(stmt.order_by(equipment.c.name)).fetchall()
        return [_to_entity(r) for r in rows]

    def save(self, item: Equipment) -> None:
        self._upsert(
            {
                "id": item.id,
                "name": item.name,
                "description": item.description,
                "category": item.category,
                "daily_rate_cents": item.daily_rate.cents,
                "condition": str(item.condition),
                "is_available": int(item.is_available),
                "current_rental_id": item.current_rental_id,
                "purchase_date": to_iso(item.purchase_date),
                "last_maintenance_date": iso_or_none(item.last_maintenance_date),
            }
        )
