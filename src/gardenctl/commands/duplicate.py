"""Command: deep-copy one or more subtrees."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from gardenctl.commands._base import GardenCommand

if TYPE_CHECKING:
    from gardenctl.commands._context import AppContext


@click.command(
    cls=GardenCommand,
    examples="""\
  gardenctl duplicate 3f2a...
  gardenctl duplicate 3f2a... 7b41... --parent 9c1d...
  gardenctl --json duplicate 3f2a...""",
)
@click.argument("node_ids", nargs=-1, required=True)
@click.option(
    "--parent",
    "parent_id",
    default=None,
    metavar="ID",
    help="Folder to place the copies in (default: beside each original).",
)
@click.pass_obj
def duplicate(app: AppContext, node_ids: tuple[str, ...], parent_id: str | None) -> None:
    """Duplicate nodes with their whole live subtrees.

    Ids that cannot be copied are reported as warnings and skipped.
    """
    from gardenctl.services.content import ContentService

    svc = ContentService(app.store)
    app.emit(svc.duplicate_nodes(node_ids, app.owner, target_parent_id=parent_id))
