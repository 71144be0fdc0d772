"""Command group: file uploads (single-phase and two-phase)."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from gardenctl.commands._base import GardenGroup, parent_option

if TYPE_CHECKING:
    from gardenctl.commands._context import AppContext


@click.group(
    cls=GardenGroup,
    examples="""\
  gardenctl upload put report.pdf
  gardenctl upload put photo.png --parent 9c1d... --title "Holiday"
  gardenctl upload initiate photo.png 48213 image/png --checksum 9f86d0...
  gardenctl upload finalize 3f2a...
  gardenctl upload finalize 3f2a... --failed --error "connection reset\"""",
)
def upload() -> None:
    """Upload files into the tree."""


@upload.command(
    examples="""\
  gardenctl upload put report.pdf
  gardenctl upload put notes.txt --mime text/plain --parent 9c1d..."""
)
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@parent_option
@click.option("--title", default=None, help="Node title (default: file name).")
@click.option("--mime", "mime_type", default=None, help="MIME type (default: guessed).")
@click.pass_obj
def put(
    app: AppContext,
    path: Path,
    parent_id: str | None,
    title: str | None,
    mime_type: str | None,
) -> None:
    """Store a local file and create a ready file node in one step."""
    from gardenctl.services.content import ContentService

    svc = ContentService(app.store)
    app.emit(
        svc.upload_file(
            app.owner,
            path.name,
            path.read_bytes(),
            mime_type=mime_type,
            parent_id=parent_id,
            title=title,
        )
    )


@upload.command(
    examples="""\
  gardenctl upload initiate photo.png 48213 image/png
  gardenctl upload initiate photo.png 48213 image/png --checksum 9f86d0..."""
)
@click.argument("file_name")
@click.argument("file_size", type=int)
@click.argument("mime_type")
@parent_option
@click.option("--checksum", default=None, help="SHA-256 of the content, for dedup.")
@click.option("--title", default=None, help="Node title (default: file name).")
@click.pass_obj
def initiate(
    app: AppContext,
    file_name: str,
    file_size: int,
    mime_type: str,
    parent_id: str | None,
    checksum: str | None,
    title: str | None,
) -> None:
    """Reserve a file node and print a presigned upload URL."""
    from gardenctl.services.content import ContentService

    svc = ContentService(app.store)
    app.emit(
        svc.initiate_upload(
            app.owner,
            file_name,
            file_size,
            mime_type,
            checksum=checksum,
            parent_id=parent_id,
            title=title,
        )
    )


@upload.command(
    examples="""\
  gardenctl upload finalize 3f2a...
  gardenctl upload finalize 3f2a... --failed --error "client aborted\""""
)
@click.argument("node_id")
@click.option("--failed", is_flag=True, help="Report the client upload as failed.")
@click.option("--error", "error_message", default=None, help="Failure reason.")
@click.pass_obj
def finalize(
    app: AppContext,
    node_id: str,
    failed: bool,
    error_message: str | None,
) -> None:
    """Confirm (or fail) an initiated upload."""
    from gardenctl.services.content import ContentService

    svc = ContentService(app.store)
    app.emit(
        svc.finalize_upload(node_id, app.owner, success=not failed, error=error_message)
    )
