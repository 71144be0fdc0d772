"""Custom Click base classes and shared options.

:class:`GardenCommand` and :class:`GardenGroup` accept an ``examples``
parameter.  When ``--examples`` is passed, the command prints usage
examples and exits, which keeps ``--help`` concise.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import click

_F = TypeVar("_F", bound=Callable[..., Any])


def _add_examples_option(cmd: click.Command, examples: str) -> None:
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


class GardenCommand(click.Command):
    """Click Command subclass that supports an ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class GardenGroup(click.Group):
    """Click Group subclass that supports an ``--examples`` flag.

    Sets ``command_class = GardenCommand`` so all subcommands accept the
    ``examples`` parameter without explicit ``cls=`` each time.
    """

    command_class = GardenCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


# --- Shared options ---


def parent_option(func: _F) -> _F:
    """``--parent ID``: folder to place the new node in (root when omitted)."""
    return click.option(
        "--parent",
        "parent_id",
        default=None,
        metavar="ID",
        help="Parent folder id (root when omitted).",
    )(func)


def appearance_options(func: _F) -> _F:
    """``--icon`` / ``--color`` / ``--category`` display attributes."""
    func = click.option("--category", "category_id", default=None, help="Category id.")(func)
    func = click.option("--color", "icon_color", default=None, help="Icon color.")(func)
    return click.option("--icon", "custom_icon", default=None, help="Custom icon.")(func)
