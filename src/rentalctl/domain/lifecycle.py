"""Rental and reservation state machines.

Each status is a closed ``StrEnum`` paired with a transition map.  Entities
call :func:`require_transition` before building their next snapshot, so an
illegal move raises :class:`InvalidTransitionError` and never produces a
partially updated entity.
"""

from __future__ import annotations

from enum import StrEnum

from rentalctl.domain.errors import InvalidTransitionError


class RentalStatus(StrEnum):
    """Status of equipment in (or formerly in) a member's possession."""

    ACTIVE = "ACTIVE"
    OVERDUE = "OVERDUE"
    RETURNED = "RETURNED"
    CANCELLED = "CANCELLED"


class ReservationStatus(StrEnum):
    """Status of a future-dated hold on equipment."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    FULFILLED = "FULFILLED"
    EXPIRED = "EXPIRED"


# --- Transition maps ---

RENTAL_TRANSITIONS: dict[str, list[str]] = {
    "ACTIVE": ["OVERDUE", "RETURNED", "CANCELLED"],
    "OVERDUE": ["RETURNED", "CANCELLED", "ACTIVE"],  # ACTIVE via extension only
    "RETURNED": [],
    "CANCELLED": [],
}

RESERVATION_TRANSITIONS: dict[str, list[str]] = {
    "PENDING": ["CONFIRMED", "CANCELLED", "EXPIRED"],
    "CONFIRMED": ["CANCELLED", "FULFILLED", "EXPIRED"],
    "CANCELLED": [],
    "FULFILLED": [],
    "EXPIRED": [],
}

# States that hold the equipment against other bookings.
LIVE_RENTAL_STATUSES: frozenset[RentalStatus] = frozenset(
    {RentalStatus.ACTIVE, RentalStatus.OVERDUE}
)
LIVE_RESERVATION_STATUSES: frozenset[ReservationStatus] = frozenset(
    {ReservationStatus.PENDING, ReservationStatus.CONFIRMED}
)


def is_valid_transition(
    current: str,
    target: str,
    transitions: dict[str, list[str]],
) -> bool:
    """Check if transitioning from *current* to *target* is allowed."""
    allowed = transitions.get(current, [])
    return target in allowed


def is_terminal(status: str, transitions: dict[str, list[str]]) -> bool:
    return not transitions.get(status)


def require_transition(
    entity: str,
    entity_id: str,
    current: str,
    target: str,
    transitions: dict[str, list[str]],
) -> None:
    """Raise :class:`InvalidTransitionError` unless *current* → *target* is legal."""
    if not is_valid_transition(current, target, transitions):
        raise InvalidTransitionError(entity, entity_id, current, target)
