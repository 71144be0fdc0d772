"""Parametrized help tests for all CLI commands."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from gardenctl.cli import cli

# (CLI args, expected keywords in output)
HELP_COMMANDS: list[tuple[list[str], list[str]]] = [
    # -- create group --
    (["create", "--help"], ["folder", "note", "code", "html", "link"]),
    (["create", "folder", "--help"], ["--parent", "--view-mode", "--icon", "--color"]),
    (["create", "note", "--help"], ["--markdown", "--from-file"]),
    (["create", "code", "--help"], ["--language", "--code"]),
    (["create", "html", "--help"], ["--html", "--from-file"]),
    (["create", "link", "--help"], ["URL", "--subtype"]),
    # -- upload group --
    (["upload", "--help"], ["put", "initiate", "finalize"]),
    (["upload", "put", "--help"], ["PATH", "--title", "--mime"]),
    (["upload", "initiate", "--help"], ["FILE_NAME", "FILE_SIZE", "MIME_TYPE", "--checksum"]),
    (["upload", "finalize", "--help"], ["NODE_ID", "--failed", "--error"]),
    # -- structure --
    (["move", "--help"], ["NODE_ID", "--parent", "--root", "--index"]),
    (["duplicate", "--help"], ["NODE_IDS", "--parent"]),
    (["trash", "--help"], ["NODE_ID"]),
    # -- reads --
    (["show", "--help"], ["NODE_ID", "--ancestors"]),
    (["ls", "--help"], ["PARENT_ID"]),
    (["tree", "--help"], ["content tree"]),
    # -- maintenance --
    (["check", "--help"], ["--fix", "--rebuild-paths", "--all-owners"]),
    (["upgrade", "--help"], ["--check"]),
]


def _help_id(item: tuple[list[str], list[str]]) -> str:
    args, _ = item
    return "_".join(a for a in args if a != "--help")


@pytest.mark.parametrize(
    "args,expected_keywords",
    HELP_COMMANDS,
    ids=[_help_id(item) for item in HELP_COMMANDS],
)
def test_help(cli_runner: CliRunner, args: list[str], expected_keywords: list[str]) -> None:
    result = cli_runner.invoke(cli, args)
    assert result.exit_code == 0
    for kw in expected_keywords:
        assert kw in result.output, f"Expected '{kw}' in help output for {args}"
