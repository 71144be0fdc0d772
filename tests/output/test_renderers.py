"""Tests for operation-specific Rich renderers."""

from gardenctl.output.renderers import render_quiet, render_result
from gardenctl.services.result import ServiceError, ServiceResult

# ── Helpers ───────────────────────────────────────────────────────────


def _render(result: ServiceResult, *, verbose: bool = False) -> str:
    """Rendered output with runs of whitespace collapsed."""
    return " ".join(render_result(result, verbose=verbose).split())


def _ok(op: str, **data: object) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data=dict(data))


def _err(op: str, code: str, message: str, **detail: object) -> ServiceResult:
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(code=code, message=message, detail=dict(detail)),
    )


def _node(node_id: str, title: str, kind: str = "note", order: int = 0) -> dict:
    return {
        "id": node_id,
        "title": title,
        "slug": title.lower(),
        "kind": kind,
        "display_order": order,
        "parent_id": None,
        "path": "",
    }


# ── Error rendering ──────────────────────────────────────────────────


class TestErrorRenderer:
    def test_basic_error(self) -> None:
        output = _render(_err("create_node", "VALIDATION_FAILED", "Title is required"))
        assert "ERROR" in output
        assert "create_node [VALIDATION_FAILED]" in output
        assert "Title is required" in output

    def test_verbose_shows_detail(self) -> None:
        result = _err("move_node", "TREE_TOO_DEEP", "Too deep", node_id="n1")
        output = _render(result, verbose=True)
        assert "detail" in output
        assert "node_id: n1" in output

    def test_message_with_brackets_not_markup(self) -> None:
        output = _render(_err("get_node", "NOT_FOUND", "Content not found: [bold]x"))
        assert "[bold]x" in output

    def test_no_error_object(self) -> None:
        assert "Unknown error" in _render(ServiceResult(ok=False, op="test"))


# ── Node renderers ───────────────────────────────────────────────────


class TestMutationRenderer:
    def test_create_node(self) -> None:
        output = _render(_ok("create_node", **_node("n1", "Projects", "folder")))
        assert "OK" in output
        assert "create_node" in output
        assert "id: n1" in output
        assert "title: Projects" in output
        assert "kind: folder" in output

    def test_trash_node(self) -> None:
        output = _render(_ok("trash_node", node_id="n1", trashed=3))
        assert "node_id: n1" in output
        assert "trashed: 3" in output


class TestNodeRenderer:
    def test_panel_with_payload(self) -> None:
        data = _node("n1", "Ideas")
        data["payload"] = {"kind": "note", "markdown": "# Ideas", "search_text": ""}
        output = _render(_ok("get_node", **data))
        assert "n1 — Ideas" in output
        assert "markdown: # Ideas" in output
        assert "search_text" not in output

    def test_title_with_markup_chars(self) -> None:
        output = _render(_ok("get_node", **_node("n1", "[red]Alert")))
        assert "[red]Alert" in output


class TestChildrenRenderer:
    def test_table_rows(self) -> None:
        items = [_node("n1", "Alpha", order=0), _node("n2", "Beta", "folder", order=1)]
        output = _render(_ok("list_children", parent_id=None, items=items, count=2))
        assert "Alpha" in output
        assert "Beta" in output
        assert output.index("Alpha") < output.index("Beta")
        assert "2 items" in output

    def test_verbose_adds_slug(self) -> None:
        items = [_node("n1", "Alpha")]
        output = _render(_ok("list_children", items=items, count=1), verbose=True)
        assert "Slug" in output


class TestTreeRenderer:
    def test_nested(self) -> None:
        tree = [
            {
                "id": "a",
                "title": "Projects",
                "kind": "folder",
                "children": [{"id": "b", "title": "Plan", "kind": "note", "children": []}],
            },
            {"id": "c", "title": "Archive", "kind": "folder", "children": []},
        ]
        output = _render(_ok("get_tree", tree=tree, count=3))
        assert output.index("Projects") < output.index("Plan") < output.index("Archive")
        assert "3 nodes" in output

    def test_empty(self) -> None:
        assert "(empty)" in _render(_ok("get_tree", tree=[], count=0))


class TestAncestorsRenderer:
    def test_breadcrumbs(self) -> None:
        ancestors = [{"id": "a", "title": "Projects"}, {"id": "b", "title": "2024"}]
        output = _render(_ok("get_ancestors", node_id="c", ancestors=ancestors))
        assert "Projects / 2024" in output

    def test_root(self) -> None:
        assert "(root)" in _render(_ok("get_ancestors", node_id="a", ancestors=[]))


class TestDuplicateRenderer:
    def test_copies_and_skips(self) -> None:
        result = _ok(
            "duplicate_nodes",
            duplicated=[{"original_id": "n1", "new_id": "n9", "title": "Plan (Copy)"}],
            skipped=[{"id": "zz", "code": "NOT_FOUND", "reason": "Content not found: zz"}],
        )
        output = _render(result)
        assert "n1 → n9" in output
        assert "Plan (Copy)" in output
        assert "skipped zz" in output
        assert "duplicated: 1" in output


# ── Upload, check, upgrade ───────────────────────────────────────────


class TestUploadRenderer:
    def test_initiate(self) -> None:
        result = _ok(
            "initiate_upload",
            is_duplicate=False,
            node_id="n1",
            storage_key="uploads/alice/x.pdf",
            expires_in_seconds=3600,
        )
        output = _render(result)
        assert "node_id: n1" in output
        assert "storage_key: uploads/alice/x.pdf" in output

    def test_upload_file_node(self) -> None:
        result = _ok(
            "upload_file",
            node=_node("n1", "report.pdf", "file"),
            is_duplicate=True,
            file_name="report (1).pdf",
        )
        output = _render(result)
        assert "id: n1" in output
        assert "file_name: report (1).pdf" in output


class TestCheckRenderer:
    def test_no_issues(self) -> None:
        assert "No issues found" in _render(_ok("check", issues=[], count=0))

    def test_grouped_issues(self) -> None:
        issues = [
            {
                "severity": "error",
                "category": "parent_structure",
                "node_id": "n1",
                "message": "Parent chain loops",
            },
            {
                "severity": "info",
                "category": "sibling_ordering",
                "node_id": None,
                "message": "Sibling orders are not 0..2: [0, 2, 5]",
            },
        ]
        output = _render(_ok("check", issues=issues, count=2))
        assert "parent_structure" in output
        assert "[n1]" in output
        assert "[0, 2, 5]" in output
        assert "1 errors, 0 warnings" in output

    def test_fix(self) -> None:
        result = _ok("fix", fixes=["Rebuilt 2 materialized paths"], count=1, backup_path="/b")
        output = _render(result)
        assert "fixes_applied: 1" in output
        assert "- Rebuilt 2 materialized paths" in output
        assert "/b" not in output


class TestUpgradeRenderer:
    def test_pending(self) -> None:
        result = _ok(
            "upgrade",
            pending_count=1,
            pending=[{"revision": "001_baseline", "description": "Baseline"}],
            current=None,
            head="001_baseline",
        )
        output = _render(result, verbose=True)
        assert "pending_count: 1" in output
        assert "001_baseline: Baseline" in output


class TestVerboseTelemetry:
    def test_span_tree(self) -> None:
        result = ServiceResult(
            ok=True,
            op="create_node",
            data={"id": "n1"},
            meta={
                "telemetry": {
                    "name": "ContentService.create_node",
                    "duration_ms": 1.5,
                    "children": [{"name": "persist", "duration_ms": 1.0}],
                }
            },
        )
        output = _render(result, verbose=True)
        assert "ContentService.create_node" in output
        assert "persist" in output
        assert "1.50ms" in output


class TestGenericRenderer:
    def test_unknown_op(self) -> None:
        output = _render(_ok("something_else", answer=42))
        assert "something_else" in output
        assert "answer: 42" in output


# ── Quiet mode ───────────────────────────────────────────────────────


class TestQuietRenderer:
    def test_single_id(self) -> None:
        assert render_quiet(_ok("create_node", id="n1", title="x")) == "n1"

    def test_items(self) -> None:
        items = [_node("n1", "A"), _node("n2", "B")]
        assert render_quiet(_ok("list_children", items=items)) == "n1\nn2"

    def test_duplicates(self) -> None:
        duplicated = [{"original_id": "n1", "new_id": "n9", "title": "x"}]
        assert render_quiet(_ok("duplicate_nodes", duplicated=duplicated, skipped=[])) == "n9"

    def test_upload_node(self) -> None:
        result = _ok("upload_file", node={"id": "n1"}, is_duplicate=False, file_name="a")
        assert render_quiet(result) == "n1"

    def test_fallback(self) -> None:
        assert render_quiet(_ok("check", issues=[], count=0)) == "OK: check"

    def test_error(self) -> None:
        output = render_quiet(_err("move_node", "NOT_FOUND", "Content not found: x"))
        assert output == "ERROR: move_node — Content not found: x"
