"""Custom Click base classes with --examples support.

Provides RentalCommand and RentalGroup that accept an ``examples``
parameter.  When ``--examples`` is passed, the command prints usage
examples and exits, keeping ``--help`` short.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import click

from rentalctl.domain.ports import PaymentMethod


def _add_examples_option(cmd: click.Command | click.Group, examples: str) -> None:
    """Attach an eager ``--examples`` flag to a Click command or group."""

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class RentalCommand(click.Command):
    """Click Command subclass that supports an ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class RentalGroup(click.Group):
    """Click Group subclass that supports an ``--examples`` flag.

    Sets ``command_class = RentalCommand`` so all subcommands accept the
    ``examples`` parameter without an explicit ``cls=``.
    """

    command_class = RentalCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class Instant(click.ParamType):
    """ISO-8601 date or datetime; naive values are taken as UTC."""

    name = "datetime"

    def convert(
        self, value: Any, param: click.Parameter | None, ctx: click.Context | None
    ) -> datetime:
        if isinstance(value, datetime):
            parsed = value
        else:
            try:
                parsed = datetime.fromisoformat(str(value))
            except ValueError:
                self.fail(f"{value!r} is not an ISO-8601 date or datetime", param, ctx)
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)


INSTANT = Instant()

PAYMENT_METHODS = click.Choice([m.value for m in PaymentMethod], case_sensitive=False)
