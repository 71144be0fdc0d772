"""Tests for the create command group."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from gardenctl.cli import cli


def _data(result) -> dict:
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)["data"]


@pytest.mark.usefixtures("_isolated_store")
class TestCreateFolderCommand:
    def test_create_folder(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["create", "folder", "Projects"])
        assert result.exit_code == 0
        assert "OK" in result.output
        assert "Projects" in result.output

    def test_create_folder_json(self, cli_runner: CliRunner) -> None:
        data = _data(cli_runner.invoke(cli, ["--json", "create", "folder", "Projects"]))
        assert data["title"] == "Projects"
        assert data["slug"] == "projects"
        assert data["kind"] == "folder"
        assert data["parent_id"] is None

    def test_view_mode_stores_payload(self, cli_runner: CliRunner) -> None:
        data = _data(
            cli_runner.invoke(cli, ["--json", "create", "folder", "Photos", "--view-mode", "grid"])
        )
        assert data["payload"]["view_mode"] == "grid"

    def test_appearance_options(self, cli_runner: CliRunner) -> None:
        data = _data(
            cli_runner.invoke(
                cli,
                ["--json", "create", "folder", "Art", "--icon", "palette", "--color", "#f0a"],
            )
        )
        assert data["custom_icon"] == "palette"
        assert data["icon_color"] == "#f0a"

    def test_nested_under_parent(self, cli_runner: CliRunner) -> None:
        parent = _data(cli_runner.invoke(cli, ["--json", "create", "folder", "Parent"]))
        child = _data(
            cli_runner.invoke(
                cli, ["--json", "create", "folder", "Child", "--parent", parent["id"]]
            )
        )
        assert child["parent_id"] == parent["id"]
        assert child["path"] == parent["id"]

    def test_missing_parent(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["create", "folder", "Child", "--parent", "missing"])
        assert result.exit_code == 1
        assert "NOT_FOUND" in result.output

    def test_blank_title(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["create", "folder", "   "])
        assert result.exit_code == 1
        assert "Title is required" in result.output


@pytest.mark.usefixtures("_isolated_store")
class TestCreateContentCommands:
    def test_note_inline(self, cli_runner: CliRunner) -> None:
        data = _data(
            cli_runner.invoke(cli, ["--json", "create", "note", "Agenda", "--markdown", "- one"])
        )
        assert data["kind"] == "note"
        assert data["payload"]["markdown"] == "- one"
        assert data["payload"]["search_text"] == "- one"

    def test_note_from_file(self, cli_runner: CliRunner) -> None:
        Path("draft.md").write_text("# Draft\n", encoding="utf-8")
        data = _data(
            cli_runner.invoke(cli, ["--json", "create", "note", "Draft", "--from-file", "draft.md"])
        )
        assert data["payload"]["markdown"] == "# Draft\n"

    def test_code(self, cli_runner: CliRunner) -> None:
        data = _data(
            cli_runner.invoke(
                cli,
                ["--json", "create", "code", "query", "--language", "sql", "--code", "select 1"],
            )
        )
        assert data["kind"] == "code"
        assert data["payload"]["language"] == "sql"
        assert data["payload"]["code"] == "select 1"

    def test_html(self, cli_runner: CliRunner) -> None:
        data = _data(
            cli_runner.invoke(cli, ["--json", "create", "html", "Banner", "--html", "<h1>Hi</h1>"])
        )
        assert data["kind"] == "html"
        assert data["payload"]["html"] == "<h1>Hi</h1>"

    def test_link(self, cli_runner: CliRunner) -> None:
        data = _data(
            cli_runner.invoke(
                cli, ["--json", "create", "link", "Python docs", "https://docs.python.org"]
            )
        )
        assert data["kind"] == "external"
        assert data["payload"]["url"] == "https://docs.python.org"
        assert data["payload"]["subtype"] == "website"

    def test_note_cannot_be_parent(self, cli_runner: CliRunner) -> None:
        note = _data(cli_runner.invoke(cli, ["--json", "create", "note", "Leaf"]))
        result = cli_runner.invoke(cli, ["create", "note", "Child", "--parent", note["id"]])
        assert result.exit_code == 1
        assert "not a folder" in result.output

    def test_quiet_prints_id(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "create", "note", "Quiet"])
        assert result.exit_code == 0
        assert len(result.stdout.strip()) == 32
