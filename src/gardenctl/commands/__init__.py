"""Subcommand modules for gardenctl.

Provides register_commands() which uses deferred imports to keep
``gardenctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group."""
    # --- Groups ---
    from gardenctl.commands.create import create
    from gardenctl.commands.upload import upload

    cli.add_command(create)
    cli.add_command(upload)

    # --- Standalone commands ---
    from gardenctl.commands.check import check
    from gardenctl.commands.duplicate import duplicate
    from gardenctl.commands.move import move
    from gardenctl.commands.nodes import ls, show, trash, tree
    from gardenctl.commands.upgrade import upgrade

    cli.add_command(move)
    cli.add_command(duplicate)
    cli.add_command(trash)
    cli.add_command(show)
    cli.add_command(ls)
    cli.add_command(tree)
    cli.add_command(check)
    cli.add_command(upgrade)
