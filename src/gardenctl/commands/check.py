"""Command: tree integrity checking and repair."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from gardenctl.commands._base import GardenCommand

if TYPE_CHECKING:
    from gardenctl.commands._context import AppContext


@click.command(
    cls=GardenCommand,
    examples="""\
  gardenctl check
  gardenctl check --all-owners
  gardenctl check --fix
  gardenctl check --rebuild-paths""",
)
@click.option("--fix", is_flag=True, help="Rebuild paths and renumber sibling sets.")
@click.option("--rebuild-paths", is_flag=True, help="Recompute every materialized path.")
@click.option("--all-owners", is_flag=True, help="Check every owner, not just the current one.")
@click.pass_obj
def check(app: AppContext, fix: bool, rebuild_paths: bool, all_owners: bool) -> None:
    """Check tree integrity and optionally repair issues."""
    from gardenctl.services.check import CheckService

    svc = CheckService(app.store)
    owner_id = None if all_owners else app.owner

    if rebuild_paths:
        app.emit(svc.rebuild_paths(owner_id))
    elif fix:
        app.emit(svc.fix(owner_id))
    else:
        app.emit(svc.check(owner_id))
