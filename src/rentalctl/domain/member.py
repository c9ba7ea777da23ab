"""Member — the renter, with tier-derived limits."""

from __future__ import annotations

import re
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from rentalctl.domain.dates import ensure_utc
from rentalctl.domain.errors import (
    InvalidInputError,
    MemberInactiveError,
    MemberStateError,
    RentalLimitExceededError,
)
from rentalctl.domain.ids import generate_id
from rentalctl.domain.money import Money
from rentalctl.domain.types import MembershipTier

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _clean_name(name: str) -> str:
    cleaned = name.strip()
    if not cleaned:
        raise InvalidInputError("Member name cannot be empty")
    return cleaned


def _clean_email(email: str) -> str:
    cleaned = email.strip().lower()
    if not _EMAIL_PATTERN.match(cleaned):
        raise InvalidInputError(f"Invalid email address: {email!r}", email=email)
    return cleaned


class Member(BaseModel):
    """Immutable member snapshot.

    INVARIANT: ``0 <= active_rental_count <= tier cap``.
    """

    model_config = {"frozen": True}

    id: str
    name: str
    email: str
    tier: MembershipTier = MembershipTier.BASIC
    join_date: datetime
    active_rental_count: int = 0
    total_rentals: int = 0
    is_active: bool = True

    @classmethod
    def create(
        cls,
        *,
        name: str,
        email: str,
        join_date: datetime,
        tier: MembershipTier = MembershipTier.BASIC,
        member_id: str | None = None,
    ) -> Member:
        return cls(
            id=member_id or generate_id("member"),
            name=_clean_name(name),
            email=_clean_email(email),
            tier=tier,
            join_date=ensure_utc(join_date),
        )

    # --- Tier-derived limits ---

    @property
    def max_concurrent_rentals(self) -> int:
        return self.tier.policy.max_concurrent_rentals

    @property
    def max_rental_days(self) -> int:
        return self.tier.policy.max_rental_days

    @property
    def discount_percent(self) -> Decimal:
        return self.tier.policy.discount_percent

    def can_rent(self) -> bool:
        return self.is_active and self.active_rental_count < self.max_concurrent_rentals

    def apply_discount(self, cost: Money) -> Money:
        """Apply the tier discount to a pre-fee base cost."""
        return cost.multiply((Decimal(100) - self.discount_percent) / Decimal(100))

    # --- Transitions ---

    def increment_active_rentals(self) -> Member:
        if not self.is_active:
            raise MemberInactiveError(self.id)
        if self.active_rental_count >= self.max_concurrent_rentals:
            raise RentalLimitExceededError(self.id, self.max_concurrent_rentals)
        return self.model_copy(
            update={
                "active_rental_count": self.active_rental_count + 1,
                "total_rentals": self.total_rentals + 1,
            }
        )

    def decrement_active_rentals(self) -> Member:
        if self.active_rental_count <= 0:
            raise MemberStateError(f"Member {self.id} has no active rentals", member_id=self.id)
        return self.model_copy(update={"active_rental_count": self.active_rental_count - 1})

    def change_tier(self, tier: MembershipTier) -> Member:
        return self.model_copy(update={"tier": tier})

    def deactivate(self) -> Member:
        if self.active_rental_count > 0:
            raise MemberStateError(
                f"Member {self.id} cannot be deactivated with active rentals",
                member_id=self.id,
                active_rental_count=self.active_rental_count,
            )
        return self.model_copy(update={"is_active": False})

    def reactivate(self) -> Member:
        return self.model_copy(update={"is_active": True})

    def update_email(self, email: str) -> Member:
        return self.model_copy(update={"email": _clean_email(email)})

    def update_name(self, name: str) -> Member:
        return self.model_copy(update={"name": _clean_name(name)})
