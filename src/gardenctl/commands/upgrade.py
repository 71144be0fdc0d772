"""Command: bring the store's database schema up to date."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from gardenctl.commands._base import GardenCommand

if TYPE_CHECKING:
    from gardenctl.commands._context import AppContext


@click.command(
    cls=GardenCommand,
    examples="""\
  gardenctl upgrade --check
  gardenctl upgrade
  gardenctl -C ~/garden --json upgrade""",
)
@click.option("--check", "dry_run", is_flag=True, help="List pending revisions only.")
@click.pass_obj
def upgrade(app: AppContext, dry_run: bool) -> None:
    """Apply pending schema revisions.

    The database is copied to .gardenctl/backups/ before anything runs.
    """
    from gardenctl.services.upgrade import UpgradeService

    service = UpgradeService(app.store)
    result = service.check_pending() if dry_run else service.apply()
    app.emit(result)
