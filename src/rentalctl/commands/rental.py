"""Command group: checkout, return, extension and overdue handling."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from rentalctl.commands._base import INSTANT, PAYMENT_METHODS, RentalGroup
from rentalctl.domain.lifecycle import RentalStatus
from rentalctl.domain.types import EquipmentCondition
from rentalctl.services.rental import RentalService

if TYPE_CHECKING:
    from datetime import datetime

    from rentalctl.commands._context import AppContext

_RENTAL_EXAMPLES = """\
  rentalctl rental create mbr_7c21e09a4b5f eqp_3f9a0c1b2d4e --days 5
  rentalctl rental return rnt_5d0e8f1a2b3c --condition GOOD
  rentalctl rental extend rnt_5d0e8f1a2b3c 2
  rentalctl rental list --status OVERDUE
  rentalctl rental overdue
  rentalctl rental remind --days 1"""


@click.group(cls=RentalGroup, examples=_RENTAL_EXAMPLES)
@click.pass_obj
def rental(app: AppContext) -> None:
    """Check equipment out and back in."""


@rental.command(
    examples="""\
  rentalctl rental create mbr_7c21e09a4b5f eqp_3f9a0c1b2d4e --days 5
  rentalctl rental create mbr_7c21e09a4b5f eqp_3f9a0c1b2d4e --end 2026-11-02
  rentalctl --json rental create mbr_7c21e09a4b5f eqp_3f9a0c1b2d4e --days 3 --method CASH"""
)
@click.argument("member_id")
@click.argument("equipment_id")
@click.option("--start", type=INSTANT, default=None, help="Start (default: now).")
@click.option("--end", type=INSTANT, default=None, help="End of the rental (exclusive).")
@click.option("--days", type=int, default=None, help="Length in days (instead of --end).")
@click.option(
    "--method", "payment_method", type=PAYMENT_METHODS, help="Payment method."
)
@click.pass_obj
def create(
    app: AppContext,
    member_id: str,
    equipment_id: str,
    start: datetime | None,
    end: datetime | None,
    days: int | None,
    payment_method: str | None,
) -> None:
    """Rent equipment to a member and charge for it."""
    app.emit(
        RentalService(app.store).create_rental(
            member_id=member_id,
            equipment_id=equipment_id,
            start=start,
            end=end,
            days=days,
            payment_method=payment_method,
        )
    )


@rental.command(
    name="return",
    examples="""\
  rentalctl rental return rnt_5d0e8f1a2b3c --condition GOOD
  rentalctl rental return rnt_5d0e8f1a2b3c --condition DAMAGED""",
)
@click.argument("rental_id")
@click.option(
    "--condition",
    type=click.Choice([c.value for c in EquipmentCondition], case_sensitive=False),
    required=True,
    help="Condition the equipment came back in.",
)
@click.option(
    "--method", "payment_method", type=PAYMENT_METHODS, help="Payment method for fees."
)
@click.pass_obj
def return_cmd(
    app: AppContext, rental_id: str, condition: str, payment_method: str | None
) -> None:
    """Return rented equipment, charging any late or damage fees."""
    app.emit(
        RentalService(app.store).return_rental(
            rental_id, condition=condition, payment_method=payment_method
        )
    )


@rental.command(examples="  rentalctl rental extend rnt_5d0e8f1a2b3c 3")
@click.argument("rental_id")
@click.argument("additional_days", type=int)
@click.option(
    "--method", "payment_method", type=PAYMENT_METHODS, help="Payment method."
)
@click.pass_obj
def extend(
    app: AppContext, rental_id: str, additional_days: int, payment_method: str | None
) -> None:
    """Extend a rental by a number of days."""
    app.emit(
        RentalService(app.store).extend_rental(
            rental_id, additional_days=additional_days, payment_method=payment_method
        )
    )


@rental.command(examples='  rentalctl rental cancel rnt_5d0e8f1a2b3c --reason "customer no-show"')
@click.argument("rental_id")
@click.option("--reason", default="rental cancelled", help="Reason recorded with the refund.")
@click.pass_obj
def cancel(app: AppContext, rental_id: str, reason: str) -> None:
    """Cancel an active rental and refund it."""
    app.emit(RentalService(app.store).cancel_rental(rental_id, reason=reason))


@rental.command(examples="  rentalctl rental show rnt_5d0e8f1a2b3c")
@click.argument("rental_id")
@click.pass_obj
def show(app: AppContext, rental_id: str) -> None:
    """Show one rental."""
    app.emit(RentalService(app.store).get_rental(rental_id))


@rental.command(
    name="list",
    examples="""\
  rentalctl rental list
  rentalctl rental list --member mbr_7c21e09a4b5f
  rentalctl rental list --equipment eqp_3f9a0c1b2d4e --status RETURNED""",
)
@click.option("--member", "member_id", default=None, help="Filter by member.")
@click.option("--equipment", "equipment_id", default=None, help="Filter by equipment.")
@click.option(
    "--status",
    type=click.Choice([s.value for s in RentalStatus], case_sensitive=False),
    default=None,
    help="Filter by status.",
)
@click.pass_obj
def list_cmd(
    app: AppContext, member_id: str | None, equipment_id: str | None, status: str | None
) -> None:
    """List rentals."""
    app.emit(
        RentalService(app.store).list_rentals(
            member_id=member_id, equipment_id=equipment_id, status=status
        )
    )


@rental.command(
    examples="""\
  rentalctl rental overdue
  rentalctl rental overdue --rate 15.00"""
)
@click.option("--rate", "daily_rate", default=None, help="Late fee per day (default: config).")
@click.pass_obj
def overdue(app: AppContext, daily_rate: str | None) -> None:
    """Flag rentals past their end date as overdue."""
    app.emit(RentalService(app.store).process_overdue_rentals(daily_rate=daily_rate))


@rental.command(examples="  rentalctl rental remind --days 1")
@click.option("--days", type=int, default=None, help="Look-ahead in days (default: config).")
@click.pass_obj
def remind(app: AppContext, days: int | None) -> None:
    """Remind members of rentals due soon."""
    app.emit(RentalService(app.store).send_due_reminders(days=days))
