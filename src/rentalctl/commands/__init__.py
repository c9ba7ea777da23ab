"""Subcommand modules for rentalctl.

Provides register_commands() which uses deferred imports to keep
``rentalctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups on the root CLI group."""
    from rentalctl.commands.damage import damage
    from rentalctl.commands.equipment import equipment
    from rentalctl.commands.events import events
    from rentalctl.commands.member import member
    from rentalctl.commands.rental import rental
    from rentalctl.commands.reservation import reservation

    cli.add_command(equipment)
    cli.add_command(member)
    cli.add_command(rental)
    cli.add_command(reservation)
    cli.add_command(damage)
    cli.add_command(events)
