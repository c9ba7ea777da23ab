"""Command group: future bookings, holds and fulfillment."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from rentalctl.commands._base import INSTANT, PAYMENT_METHODS, RentalGroup
from rentalctl.domain.lifecycle import ReservationStatus
from rentalctl.services.reservation import ReservationService

if TYPE_CHECKING:
    from datetime import datetime

    from rentalctl.commands._context import AppContext

_RESERVATION_EXAMPLES = """\
  rentalctl reservation availability eqp_3f9a0c1b2d4e --start 2026-12-01 --days 3
  rentalctl reservation create mbr_7c21e09a4b5f eqp_3f9a0c1b2d4e --start 2026-12-01 --days 3
  rentalctl reservation confirm rsv_0a1b2c3d4e5f --authorize
  rentalctl reservation fulfill rsv_0a1b2c3d4e5f
  rentalctl reservation expire"""


@click.group(cls=RentalGroup, examples=_RESERVATION_EXAMPLES)
@click.pass_obj
def reservation(app: AppContext) -> None:
    """Reserve equipment ahead of time."""


@reservation.command(
    examples="""\
  rentalctl reservation create mbr_7c21e09a4b5f eqp_3f9a0c1b2d4e --start 2026-12-01 --days 3
  rentalctl reservation create mbr_7c21e09a4b5f eqp_3f9a0c1b2d4e \\
      --start 2026-12-01T09:00 --end 2026-12-04T09:00 --authorize"""
)
@click.argument("member_id")
@click.argument("equipment_id")
@click.option("--start", type=INSTANT, required=True, help="Start of the reserved window.")
@click.option("--end", type=INSTANT, default=None, help="End of the window (exclusive).")
@click.option("--days", type=int, default=None, help="Length in days (instead of --end).")
@click.option(
    "--authorize/--no-authorize",
    default=None,
    help="Place a payment hold and confirm immediately (default: config).",
)
@click.option(
    "--method", "payment_method", type=PAYMENT_METHODS, help="Payment method for the hold."
)
@click.pass_obj
def create(
    app: AppContext,
    member_id: str,
    equipment_id: str,
    start: datetime,
    end: datetime | None,
    days: int | None,
    authorize: bool | None,
    payment_method: str | None,
) -> None:
    """Reserve equipment for a future window."""
    app.emit(
        ReservationService(app.store).create_reservation(
            member_id=member_id,
            equipment_id=equipment_id,
            start=start,
            end=end,
            days=days,
            authorize=authorize,
            payment_method=payment_method,
        )
    )


@reservation.command(examples="  rentalctl reservation confirm rsv_0a1b2c3d4e5f --authorize")
@click.argument("reservation_id")
@click.option(
    "--authorize/--no-authorize",
    default=None,
    help="Place a payment hold while confirming (default: config).",
)
@click.option(
    "--method", "payment_method", type=PAYMENT_METHODS, help="Payment method for the hold."
)
@click.pass_obj
def confirm(
    app: AppContext, reservation_id: str, authorize: bool | None, payment_method: str | None
) -> None:
    """Confirm a pending reservation."""
    app.emit(
        ReservationService(app.store).confirm_reservation(
            reservation_id, authorize=authorize, payment_method=payment_method
        )
    )


@reservation.command(
    examples='  rentalctl reservation cancel rsv_0a1b2c3d4e5f --reason "plans changed"'
)
@click.argument("reservation_id")
@click.option("--reason", default=None, help="Cancellation reason.")
@click.pass_obj
def cancel(app: AppContext, reservation_id: str, reason: str | None) -> None:
    """Cancel a reservation and release its payment hold."""
    app.emit(ReservationService(app.store).cancel_reservation(reservation_id, reason=reason))


@reservation.command(examples="  rentalctl reservation fulfill rsv_0a1b2c3d4e5f")
@click.argument("reservation_id")
@click.option(
    "--method", "payment_method", type=PAYMENT_METHODS, help="Payment method if no hold."
)
@click.pass_obj
def fulfill(app: AppContext, reservation_id: str, payment_method: str | None) -> None:
    """Turn a confirmed reservation into a rental."""
    app.emit(
        ReservationService(app.store).fulfill_reservation(
            reservation_id, payment_method=payment_method
        )
    )


@reservation.command(examples="  rentalctl reservation show rsv_0a1b2c3d4e5f")
@click.argument("reservation_id")
@click.pass_obj
def show(app: AppContext, reservation_id: str) -> None:
    """Show one reservation."""
    app.emit(ReservationService(app.store).get_reservation(reservation_id))


@reservation.command(
    name="list",
    examples="""\
  rentalctl reservation list --member mbr_7c21e09a4b5f
  rentalctl reservation list --status CONFIRMED""",
)
@click.option("--member", "member_id", default=None, help="Filter by member.")
@click.option("--equipment", "equipment_id", default=None, help="Filter by equipment.")
@click.option(
    "--status",
    type=click.Choice([s.value for s in ReservationStatus], case_sensitive=False),
    default=None,
    help="Filter by status.",
)
@click.pass_obj
def list_cmd(
    app: AppContext, member_id: str | None, equipment_id: str | None, status: str | None
) -> None:
    """List reservations."""
    app.emit(
        ReservationService(app.store).list_reservations(
            member_id=member_id, equipment_id=equipment_id, status=status
        )
    )


@reservation.command(examples="  rentalctl reservation expire")
@click.pass_obj
def expire(app: AppContext) -> None:
    """Expire reservations whose window has passed."""
    app.emit(ReservationService(app.store).process_expired_reservations())


@reservation.command(
    examples="""\
  rentalctl reservation availability eqp_3f9a0c1b2d4e --start 2026-12-01 --days 3
  rentalctl reservation availability eqp_3f9a0c1b2d4e --start 2026-12-01 --end 2026-12-05"""
)
@click.argument("equipment_id")
@click.option("--start", type=INSTANT, required=True, help="Start of the window.")
@click.option("--end", type=INSTANT, default=None, help="End of the window (exclusive).")
@click.option("--days", type=int, default=None, help="Length in days (instead of --end).")
@click.pass_obj
def availability(
    app: AppContext,
    equipment_id: str,
    start: datetime,
    end: datetime | None,
    days: int | None,
) -> None:
    """Check whether equipment is free for a window."""
    app.emit(
        ReservationService(app.store).check_availability(
            equipment_id, start=start, end=end, days=days
        )
    )


@reservation.command(examples="  rentalctl reservation remind --days 2")
@click.option("--days", type=int, default=None, help="Look-ahead in days (default: config).")
@click.pass_obj
def remind(app: AppContext, days: int | None) -> None:
    """Remind members of reservations starting soon."""
    app.emit(ReservationService(app.store).send_reservation_reminders(days=days))


@reservation.command(examples="  rentalctl reservation ready")
@click.pass_obj
def ready(app: AppContext) -> None:
    """List confirmed reservations that can be fulfilled now."""
    app.emit(ReservationService(app.store).list_ready_to_fulfill())
