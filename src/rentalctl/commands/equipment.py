"""Command group: equipment inventory, condition and maintenance."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from rentalctl.commands._base import INSTANT, RentalGroup
from rentalctl.domain.types import EquipmentCondition
from rentalctl.services.equipment import EquipmentService

if TYPE_CHECKING:
    from datetime import datetime

    from rentalctl.commands._context import AppContext

_CONDITIONS = click.Choice([c.value for c in EquipmentCondition], case_sensitive=False)

_EQUIPMENT_EXAMPLES = """\
  rentalctl equipment add "Cordless Drill" --category tools --rate 25.00
  rentalctl equipment list --available
  rentalctl equipment show eqp_3f9a0c1b2d4e
  rentalctl equipment condition eqp_3f9a0c1b2d4e POOR
  rentalctl equipment maintain eqp_3f9a0c1b2d4e --condition GOOD
  rentalctl equipment schedule --due"""


@click.group(cls=RentalGroup, examples=_EQUIPMENT_EXAMPLES)
@click.pass_obj
def equipment(app: AppContext) -> None:
    """Register equipment and track its condition and service history."""


@equipment.command(
    examples="""\
  rentalctl equipment add "Cordless Drill" --category tools --rate 25.00
  rentalctl equipment add "Tile Saw" --category tools --rate 60 --condition GOOD
  rentalctl --json equipment add "Kayak" --category outdoor --rate 45 --purchased 2024-03-01"""
)
@click.argument("name")
@click.option("--category", required=True, help="Equipment category.")
@click.option("--rate", "daily_rate", required=True, help="Daily rate, e.g. 25.00.")
@click.option("--condition", type=_CONDITIONS, default="EXCELLENT", help="Initial condition.")
@click.option("--description", default="", help="Free-text description.")
@click.option("--purchased", "purchase_date", type=INSTANT, default=None, help="Purchase date.")
@click.pass_obj
def add(
    app: AppContext,
    name: str,
    category: str,
    daily_rate: str,
    condition: str,
    description: str,
    purchase_date: datetime | None,
) -> None:
    """Register a new piece of equipment."""
    app.emit(
        EquipmentService(app.store).register_equipment(
            name=name,
            category=category,
            daily_rate=daily_rate,
            condition=condition,
            description=description,
            purchase_date=purchase_date,
        )
    )


@equipment.command(
    name="list",
    examples="""\
  rentalctl equipment list
  rentalctl equipment list --category tools --available
  rentalctl -q equipment list --available""",
)
@click.option("--category", default=None, help="Filter by category.")
@click.option("--available", "available_only", is_flag=True, help="Only available units.")
@click.pass_obj
def list_cmd(app: AppContext, category: str | None, available_only: bool) -> None:
    """List equipment."""
    app.emit(
        EquipmentService(app.store).list_equipment(
            category=category, available_only=available_only
        )
    )


@equipment.command(examples="  rentalctl equipment show eqp_3f9a0c1b2d4e")
@click.argument("equipment_id")
@click.pass_obj
def show(app: AppContext, equipment_id: str) -> None:
    """Show one piece of equipment."""
    app.emit(EquipmentService(app.store).get_equipment(equipment_id))


@equipment.command(
    examples="""\
  rentalctl equipment condition eqp_3f9a0c1b2d4e FAIR
  rentalctl equipment condition eqp_3f9a0c1b2d4e under_repair"""
)
@click.argument("equipment_id")
@click.argument("condition", type=_CONDITIONS)
@click.pass_obj
def condition(app: AppContext, equipment_id: str, condition: str) -> None:
    """Set the equipment's condition."""
    app.emit(EquipmentService(app.store).update_condition(equipment_id, condition))


@equipment.command(
    examples="""\
  rentalctl equipment maintain eqp_3f9a0c1b2d4e
  rentalctl equipment maintain eqp_3f9a0c1b2d4e --condition EXCELLENT"""
)
@click.argument("equipment_id")
@click.option("--condition", type=_CONDITIONS, default=None, help="Condition after service.")
@click.pass_obj
def maintain(app: AppContext, equipment_id: str, condition: str | None) -> None:
    """Record a maintenance visit."""
    app.emit(EquipmentService(app.store).record_maintenance(equipment_id, condition=condition))


@equipment.command(examples="  rentalctl equipment rate eqp_3f9a0c1b2d4e 30.00")
@click.argument("equipment_id")
@click.argument("daily_rate")
@click.pass_obj
def rate(app: AppContext, equipment_id: str, daily_rate: str) -> None:
    """Change the daily rate."""
    app.emit(EquipmentService(app.store).update_daily_rate(equipment_id, daily_rate))


@equipment.command(
    examples="""\
  rentalctl equipment schedule
  rentalctl equipment schedule --due"""
)
@click.option("--due", "due_only", is_flag=True, help="Only units due for service.")
@click.pass_obj
def schedule(app: AppContext, due_only: bool) -> None:
    """Show the maintenance schedule."""
    app.emit(EquipmentService(app.store).maintenance_schedule(due_only=due_only))
