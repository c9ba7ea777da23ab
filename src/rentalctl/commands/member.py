"""Command group: member registration, tiers and activation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from rentalctl.commands._base import RentalGroup
from rentalctl.domain.types import MembershipTier

if TYPE_CHECKING:
    from rentalctl.commands._context import AppContext

_TIERS = click.Choice([t.value for t in MembershipTier], case_sensitive=False)

_MEMBER_EXAMPLES = """\
  rentalctl member add "Ada Lovelace" ada@example.com --tier GOLD
  rentalctl member list --tier GOLD --active
  rentalctl member show mbr_7c21e09a4b5f
  rentalctl member tier mbr_7c21e09a4b5f PLATINUM
  rentalctl member deactivate mbr_7c21e09a4b5f"""


@click.group(cls=RentalGroup, examples=_MEMBER_EXAMPLES)
@click.pass_obj
def member(app: AppContext) -> None:
    """Register members and manage their tier and status."""


@member.command(
    examples="""\
  rentalctl member add "Ada Lovelace" ada@example.com
  rentalctl member add "Grace Hopper" grace@example.com --tier SILVER"""
)
@click.argument("name")
@click.argument("email")
@click.option("--tier", type=_TIERS, default="BASIC", help="Membership tier.")
@click.pass_obj
def add(app: AppContext, name: str, email: str, tier: str) -> None:
    """Register a new member."""
    from rentalctl.services.member import MemberService

    app.emit(MemberService(app.store).register_member(name=name, email=email, tier=tier))


@member.command(name="list", examples="  rentalctl member list --tier GOLD --active")
@click.option("--tier", type=_TIERS, default=None, help="Filter by tier.")
@click.option("--active", "active_only", is_flag=True, help="Only active members.")
@click.pass_obj
def list_cmd(app: AppContext, tier: str | None, active_only: bool) -> None:
    """List members."""
    from rentalctl.services.member import MemberService

    app.emit(MemberService(app.store).list_members(tier=tier, active_only=active_only))


@member.command(examples="  rentalctl member show mbr_7c21e09a4b5f")
@click.argument("member_id")
@click.pass_obj
def show(app: AppContext, member_id: str) -> None:
    """Show a member with their live rentals."""
    from rentalctl.services.member import MemberService

    app.emit(MemberService(app.store).get_member(member_id))


@member.command(
    examples="""\
  rentalctl member update mbr_7c21e09a4b5f --email ada@newmail.org
  rentalctl member update mbr_7c21e09a4b5f --name "Ada King" """
)
@click.argument("member_id")
@click.option("--name", default=None, help="New name.")
@click.option("--email", default=None, help="New email address.")
@click.pass_obj
def update(app: AppContext, member_id: str, name: str | None, email: str | None) -> None:
    """Update a member's name or email."""
    from rentalctl.services.member import MemberService

    if name is None and email is None:
        click.echo("No changes specified. Use --help for options.", err=True)
        raise SystemExit(1)
    app.emit(MemberService(app.store).update_contact(member_id, name=name, email=email))


@member.command(examples="  rentalctl member tier mbr_7c21e09a4b5f GOLD")
@click.argument("member_id")
@click.argument("tier", type=_TIERS)
@click.pass_obj
def tier(app: AppContext, member_id: str, tier: str) -> None:
    """Move a member to another tier."""
    from rentalctl.services.member import MemberService

    app.emit(MemberService(app.store).change_tier(member_id, tier))


@member.command(examples="  rentalctl member deactivate mbr_7c21e09a4b5f")
@click.argument("member_id")
@click.pass_obj
def deactivate(app: AppContext, member_id: str) -> None:
    """Deactivate a member; they can no longer rent or reserve."""
    from rentalctl.services.member import MemberService

    app.emit(MemberService(app.store).deactivate_member(member_id))


@member.command(examples="  rentalctl member reactivate mbr_7c21e09a4b5f")
@click.argument("member_id")
@click.pass_obj
def reactivate(app: AppContext, member_id: str) -> None:
    """Reactivate a member."""
    from rentalctl.services.member import MemberService

    app.emit(MemberService(app.store).reactivate_member(member_id))
