"""Command group: plugin event outbox."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from rentalctl.commands._base import RentalGroup

if TYPE_CHECKING:
    from rentalctl.commands._context import AppContext


@click.group(
    cls=RentalGroup,
    examples="""\
  rentalctl events status
  rentalctl --sync events drain""",
)
@click.pass_obj
def events(app: AppContext) -> None:
    """Inspect and retry plugin event delivery."""


@events.command(examples="  rentalctl events status\n  rentalctl --json events status")
@click.pass_obj
def status(app: AppContext) -> None:
    """Show outbox entries per status and the loaded plugins."""
    from rentalctl.services.events import EventService

    app.emit(EventService(app.store).status())


@events.command(examples="  rentalctl --sync events drain")
@click.pass_obj
def drain(app: AppContext) -> None:
    """Retry pending and failed plugin events."""
    from rentalctl.services.events import EventService

    app.emit(EventService(app.store).drain())
