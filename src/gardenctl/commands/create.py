"""Command group: node creation (folder, note, code, html, link)."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from gardenctl.commands._base import GardenGroup, appearance_options, parent_option

if TYPE_CHECKING:
    from gardenctl.commands._context import AppContext


_CREATE_EXAMPLES = """\
  gardenctl create folder "Projects"
  gardenctl create folder "Archive" --view-mode grid --icon box
  gardenctl create note "Meeting notes" --parent 3f2a... --markdown "# Agenda"
  gardenctl create note "Draft" --from-file draft.md
  gardenctl create code "fizzbuzz" --language python --from-file fizzbuzz.py
  gardenctl create html "Landing page" --from-file index.html
  gardenctl create link "Python docs" https://docs.python.org"""


def _read_text(path: str | None, inline: str | None) -> str:
    if path is not None:
        return Path(path).read_text(encoding="utf-8")
    return inline or ""


def _create(
    app: AppContext,
    title: str,
    payload: dict[str, Any] | None,
    **attrs: Any,
) -> None:
    from gardenctl.services.content import ContentService

    svc = ContentService(app.store)
    app.emit(svc.create_node(app.owner, title, payload=payload, **attrs))


@click.group(cls=GardenGroup, examples=_CREATE_EXAMPLES)
def create() -> None:
    """Create folders and content nodes."""


@create.command(
    examples="""\
  gardenctl create folder "Projects"
  gardenctl create folder "2024" --parent 3f2a...
  gardenctl create folder "Photos" --view-mode grid"""
)
@click.argument("title")
@parent_option
@appearance_options
@click.option(
    "--view-mode",
    type=click.Choice(["list", "grid", "board"]),
    default=None,
    help="Store folder view settings.",
)
@click.pass_obj
def folder(
    app: AppContext,
    title: str,
    parent_id: str | None,
    custom_icon: str | None,
    icon_color: str | None,
    category_id: str | None,
    view_mode: str | None,
) -> None:
    """Create a folder."""
    payload = {"folder": {"view_mode": view_mode}} if view_mode else None
    _create(
        app,
        title,
        payload,
        parent_id=parent_id,
        custom_icon=custom_icon,
        icon_color=icon_color,
        category_id=category_id,
    )


@create.command(
    examples="""\
  gardenctl create note "Ideas"
  gardenctl create note "Agenda" --markdown "- item one"
  gardenctl create note "Draft" --from-file draft.md --parent 3f2a..."""
)
@click.argument("title")
@parent_option
@appearance_options
@click.option("--markdown", default=None, help="Note body as Markdown.")
@click.option(
    "--from-file",
    "source",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Read the Markdown body from a file.",
)
@click.pass_obj
def note(
    app: AppContext,
    title: str,
    parent_id: str | None,
    custom_icon: str | None,
    icon_color: str | None,
    category_id: str | None,
    markdown: str | None,
    source: str | None,
) -> None:
    """Create a rich-text note."""
    body = _read_text(source, markdown)
    _create(
        app,
        title,
        {"note": {"markdown": body, "search_text": body}},
        parent_id=parent_id,
        custom_icon=custom_icon,
        icon_color=icon_color,
        category_id=category_id,
    )


@create.command(
    examples="""\
  gardenctl create code "fizzbuzz" --language python --from-file fizzbuzz.py
  gardenctl create code "query" --language sql --code "select 1\""""
)
@click.argument("title")
@parent_option
@appearance_options
@click.option("--language", default="text", show_default=True, help="Source language.")
@click.option("--code", "code_text", default=None, help="Inline source.")
@click.option(
    "--from-file",
    "source",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Read the source from a file.",
)
@click.pass_obj
def code(
    app: AppContext,
    title: str,
    parent_id: str | None,
    custom_icon: str | None,
    icon_color: str | None,
    category_id: str | None,
    language: str,
    code_text: str | None,
    source: str | None,
) -> None:
    """Create a code snippet."""
    _create(
        app,
        title,
        {"code": {"code": _read_text(source, code_text), "language": language}},
        parent_id=parent_id,
        custom_icon=custom_icon,
        icon_color=icon_color,
        category_id=category_id,
    )


@create.command(
    examples="""\
  gardenctl create html "Landing page" --from-file index.html
  gardenctl create html "Banner" --html "<h1>Hi</h1>\""""
)
@click.argument("title")
@parent_option
@appearance_options
@click.option("--html", "html_text", default=None, help="Inline HTML.")
@click.option(
    "--from-file",
    "source",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Read the HTML from a file.",
)
@click.pass_obj
def html(
    app: AppContext,
    title: str,
    parent_id: str | None,
    custom_icon: str | None,
    icon_color: str | None,
    category_id: str | None,
    html_text: str | None,
    source: str | None,
) -> None:
    """Create an HTML document."""
    _create(
        app,
        title,
        {"html": {"html": _read_text(source, html_text)}},
        parent_id=parent_id,
        custom_icon=custom_icon,
        icon_color=icon_color,
        category_id=category_id,
    )


@create.command(
    examples="""\
  gardenctl create link "Python docs" https://docs.python.org
  gardenctl create link "Talk" https://youtu.be/... --subtype video"""
)
@click.argument("title")
@click.argument("url")
@parent_option
@appearance_options
@click.option("--subtype", default="website", show_default=True, help="Link subtype.")
@click.pass_obj
def link(
    app: AppContext,
    title: str,
    url: str,
    parent_id: str | None,
    custom_icon: str | None,
    icon_color: str | None,
    category_id: str | None,
    subtype: str,
) -> None:
    """Create an external link."""
    _create(
        app,
        title,
        {"external": {"url": url, "subtype": subtype}},
        parent_id=parent_id,
        custom_icon=custom_icon,
        icon_color=icon_color,
        category_id=category_id,
    )
