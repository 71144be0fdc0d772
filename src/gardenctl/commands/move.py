"""Command: reparent and reorder a node."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from gardenctl.commands._base import GardenCommand

if TYPE_CHECKING:
    from gardenctl.commands._context import AppContext


@click.command(
    cls=GardenCommand,
    examples="""\
  gardenctl move 3f2a... --parent 9c1d...
  gardenctl move 3f2a... --parent 9c1d... --index 2
  gardenctl move 3f2a... --root
  gardenctl move 3f2a... --index 0""",
)
@click.argument("node_id")
@click.option("--parent", "parent_id", default=None, metavar="ID", help="Target folder id.")
@click.option("--root", "to_root", is_flag=True, help="Move to the top level.")
@click.option(
    "--index",
    "visual_index",
    type=int,
    default=0,
    show_default=True,
    help="Position among the target's children.",
)
@click.pass_obj
def move(
    app: AppContext,
    node_id: str,
    parent_id: str | None,
    to_root: bool,
    visual_index: int,
) -> None:
    """Move a node under another folder or reorder it in place.

    Without --parent or --root the node keeps its parent and only moves
    to --index.
    """
    if parent_id and to_root:
        raise click.UsageError("--parent and --root are mutually exclusive.")

    from gardenctl.services.content import ContentService

    svc = ContentService(app.store)
    app.emit(
        svc.move_node(
            node_id,
            app.owner,
            parent_id,
            visual_index,
            keep_parent=not (parent_id or to_root),
        )
    )
