"""Command group: damage assessments of returned rentals."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from rentalctl.commands._base import RentalGroup
from rentalctl.domain.types import EquipmentCondition

if TYPE_CHECKING:
    from rentalctl.commands._context import AppContext

_DAMAGE_EXAMPLES = """\
  rentalctl damage assess rnt_5d0e8f1a2b3c POOR --by "J. Ortiz" --notes "cracked housing"
  rentalctl damage list --rental rnt_5d0e8f1a2b3c
  rentalctl damage show dmg_9e8d7c6b5a40"""


@click.group(cls=RentalGroup, examples=_DAMAGE_EXAMPLES)
@click.pass_obj
def damage(app: AppContext) -> None:
    """Assess equipment condition after a rental."""


@damage.command(
    examples="""\
  rentalctl damage assess rnt_5d0e8f1a2b3c POOR --by "J. Ortiz"
  rentalctl --json damage assess rnt_5d0e8f1a2b3c DAMAGED --by staff --notes "bent blade" """
)
@click.argument("rental_id")
@click.argument(
    "condition_after",
    type=click.Choice([c.value for c in EquipmentCondition], case_sensitive=False),
)
@click.option("--by", "assessed_by", required=True, help="Who performed the assessment.")
@click.option("--notes", default="", help="Assessment notes.")
@click.pass_obj
def assess(
    app: AppContext, rental_id: str, condition_after: str, assessed_by: str, notes: str
) -> None:
    """Record the condition of a returned rental's equipment."""
    from rentalctl.services.damage import DamageService

    app.emit(
        DamageService(app.store).assess_damage(
            rental_id, condition_after=condition_after, assessed_by=assessed_by, notes=notes
        )
    )


@damage.command(name="list", examples="  rentalctl damage list --rental rnt_5d0e8f1a2b3c")
@click.option("--rental", "rental_id", default=None, help="Only assessments of this rental.")
@click.pass_obj
def list_cmd(app: AppContext, rental_id: str | None) -> None:
    """List damage assessments."""
    from rentalctl.services.damage import DamageService

    app.emit(DamageService(app.store).list_assessments(rental_id=rental_id))


@damage.command(examples="  rentalctl damage show dmg_9e8d7c6b5a40")
@click.argument("assessment_id")
@click.pass_obj
def show(app: AppContext, assessment_id: str) -> None:
    """Show one assessment."""
    from rentalctl.services.damage import DamageService

    app.emit(DamageService(app.store).get_assessment(assessment_id))


@damage.command(examples='  rentalctl damage notes dmg_9e8d7c6b5a40 "repaired under warranty"')
@click.argument("assessment_id")
@click.argument("notes")
@click.pass_obj
def notes(app: AppContext, assessment_id: str, notes: str) -> None:
    """Replace an assessment's notes."""
    from rentalctl.services.damage import DamageService

    app.emit(DamageService(app.store).update_notes(assessment_id, notes))
