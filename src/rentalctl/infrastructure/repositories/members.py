"""Member persistence."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select

from rentalctl.domain.dates import from_iso, to_iso
from rentalctl.domain.member import Member
from rentalctl.domain.types import MembershipTier
from rentalctl.infrastructure.database.schema import members
from rentalctl.infrastructure.repositories._base import SqlRepository


def _to_entity(row: Any) -> Member:
    return Member(
        id=row.id,
        name=row.name,
        email=row.email,
        tier=MembershipTier(row.tier),
        join_date=from_iso(row.join_date),
        active_rental_count=row.active_rental_count,
        total_rentals=row.total_rentals,
        is_active=bool(row.is_active),
    )


class SqlMemberRepository(SqlRepository):
    table = members

    def find_by_id(self, member_id: str) -> Member | None:
        row = self._fetch_one(member_id)
        return _to_entity(row) if row is not None else None

    def find_by_email(self, email: str) -> Member | None:
        row = self._conn.execute(
            select(members).where(members.c.email == email.strip().lower())
        ).first()
        return _to_entity(row) if row is not None else None

    def find_all(self) -> list[Member]:
        rows = self._conn.execute(select(members).order_by(members.c.name)).fetchall()
        return [_to_entity(r) for r in rows]

    def find_by_tier(self, tier: MembershipTier) -> list[Member]:
        rows = self._conn.execute(
            select(members).where(members.c.tier == str(tier)).order_by(members.c.name)
        ).fetchall()
        return [_to_entity(r) for r in rows]

    def find_active(self) -> list[Member]:
        rows = self._conn.execute(
            select(members).where(members.c.is_active == 1).order_by(members.c.name)
        ).fetchall()
        return [_to_entity(r) for r in rows]

    def save(self, member: Member) -> None:
        self._upsert(
            {
                "id": member.id,
                "name": member.name,
                "email": member.email,
                "tier": str(member.tier),
                "join_date": to_iso(member.join_date),
                "active_rental_count": member.active_rental_count,
                "total_rentals": member.total_rentals,
                "is_active": int(member.is_active),
            }
        )
