"""Shared plumbing for the SQL repositories."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.sqlite import insert

from rentalctl.domain.dates import from_iso, to_iso

if TYPE_CHECKING:
    from sqlalchemy import Connection, Table


def iso_or_none(value: datetime | None) -> str | None:
    return to_iso(value) if value is not None else None


def dt_or_none(value: str | None) -> datetime | None:
    return from_iso(value) if value else None


class SqlRepository:
    """Upsert, delete, exists and count over a single-key table."""

    table: Table

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def _upsert(self, values: dict[str, Any]) -> None:
        stmt = insert(self.table).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[self.table.c.id],
            set_={k: v for k, v in values.items() if k != "id"},
        )
        self._conn.execute(stmt)

    def _fetch_one(self, entity_id: str) -> Any:
        return self._conn.execute(select(self.table).where(self.table.c.id == entity_id)).first()

    def delete(self, entity_id: str) -> bool:
        result = self._conn.execute(delete(self.table).where(self.table.c.id == entity_id))
        return result.rowcount > 0

    def exists(self, entity_id: str) -> bool:
        return self._fetch_one(entity_id) is not None

    def count(self) -> int:
        return int(self._conn.execute(select(func.count()).select_from(self.table)).scalar_one())
