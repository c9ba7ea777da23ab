"""Pluggy hook specifications for rentalctl domain events.

Every domain event is published to the hook named by its ``hook_name``
after the use case that raised it has committed.  Arguments arrive in
JSON form: instants as ISO 8601 strings, money as decimal strings.
"""

from __future__ import annotations

import pluggy

PROJECT_NAME = "rentalctl"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class RentalctlHookSpec:
    """Hook specifications for the rentalctl plugin system."""

    # --- Rentals ---

    @hookspec
    def rental_created(
        self,
        rental_id: str,
        member_id: str,
        equipment_id: str,
        start: str,
        end: str,
        daily_rate: str,
        total_cost: str,
    ) -> None:
        """Called after a rental is created and paid for."""

    @hookspec
    def rental_returned(
        self,
        rental_id: str,
        member_id: str,
        equipment_id: str,
        returned_at: str,
        late_fee: str,
        damage_fee: str,
        total_cost: str,
    ) -> None:
        """Called after equipment comes back."""

    @hookspec
    def rental_overdue(
        self,
        rental_id: str,
        member_id: str,
        equipment_id: str,
        days_overdue: int,
        late_fee: str,
    ) -> None:
        """Called when the overdue sweep flags a rental."""

    @hookspec
    def rental_extended(
        self,
        rental_id: str,
        member_id: str,
        equipment_id: str,
        additional_days: int,
        new_end: str,
        additional_cost: str,
    ) -> None:
        """Called after a rental period is extended."""

    @hookspec
    def rental_cancelled(
        self,
        rental_id: str,
        member_id: str,
        equipment_id: str,
        refunded: str,
    ) -> None:
        """Called after a rental is cancelled and refunded."""

    # --- Reservations ---

    @hookspec
    def reservation_created(
        self,
        reservation_id: str,
        member_id: str,
        equipment_id: str,
        start: str,
        end: str,
        status: str,
    ) -> None:
        """Called after a reservation is booked."""

    @hookspec
    def reservation_confirmed(
        self,
        reservation_id: str,
        member_id: str,
        equipment_id: str,
    ) -> None:
        """Called after a reservation is confirmed."""

    @hookspec
    def reservation_cancelled(
        self,
        reservation_id: str,
        member_id: str,
        equipment_id: str,
        reason: str | None,
    ) -> None:
        """Called after a reservation is cancelled."""

    @hookspec
    def reservation_fulfilled(
        self,
        reservation_id: str,
        rental_id: str,
        member_id: str,
        equipment_id: str,
    ) -> None:
        """Called after a reservation is converted into a rental."""

    @hookspec
    def reservation_expired(
        self,
        reservation_id: str,
        member_id: str,
        equipment_id: str,
    ) -> None:
        """Called when the expiry sweep closes a stale reservation."""

    # --- Equipment ---

    @hookspec
    def equipment_damaged(
        self,
        equipment_id: str,
        rental_id: str,
        condition_before: str,
        condition_after: str,
        damage_fee: str,
    ) -> None:
        """Called when equipment comes back in a worse condition."""
