"""Commands: read and trash nodes (show, ls, tree, trash)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from gardenctl.commands._base import GardenCommand

if TYPE_CHECKING:
    from gardenctl.commands._context import AppContext


@click.command(
    cls=GardenCommand,
    examples="""\
  gardenctl show 3f2a...
  gardenctl show 3f2a... --ancestors
  gardenctl --json show 3f2a...""",
)
@click.argument("node_id")
@click.option("--ancestors", is_flag=True, help="Show the breadcrumb trail instead.")
@click.pass_obj
def show(app: AppContext, node_id: str, ancestors: bool) -> None:
    """Show a node and its payload."""
    from gardenctl.services.content import ContentService

    svc = ContentService(app.store)
    if ancestors:
        app.emit(svc.get_ancestors(node_id, app.owner))
    else:
        app.emit(svc.get_node(node_id, app.owner))


@click.command(
    "ls",
    cls=GardenCommand,
    examples="""\
  gardenctl ls
  gardenctl ls 9c1d...
  gardenctl -q ls 9c1d...""",
)
@click.argument("parent_id", required=False)
@click.pass_obj
def ls(app: AppContext, parent_id: str | None) -> None:
    """List the children of a folder (top level when omitted)."""
    from gardenctl.services.content import ContentService

    app.emit(ContentService(app.store).list_children(app.owner, parent_id))


@click.command(
    cls=GardenCommand,
    examples="""\
  gardenctl tree
  gardenctl --json tree""",
)
@click.pass_obj
def tree(app: AppContext) -> None:
    """Print the whole content tree."""
    from gardenctl.services.content import ContentService

    app.emit(ContentService(app.store).get_tree(app.owner))


@click.command(
    cls=GardenCommand,
    examples="""\
  gardenctl trash 3f2a...""",
)
@click.argument("node_id")
@click.pass_obj
def trash(app: AppContext, node_id: str) -> None:
    """Move a node and its subtree to the trash."""
    from gardenctl.services.content import ContentService

    app.emit(ContentService(app.store).trash_node(node_id, app.owner))
