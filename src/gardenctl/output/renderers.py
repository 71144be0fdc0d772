"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from gardenctl.output.console import create_console, get_output, style_for_kind

if TYPE_CHECKING:
    from rich.console import Console

    from gardenctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode: ids only where possible."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    d = result.data
    items = d.get("items")
    if isinstance(items, list):
        return "\n".join(str(i["id"]) for i in items if isinstance(i, dict) and "id" in i)
    if isinstance(d.get("duplicated"), list):
        return "\n".join(str(i["new_id"]) for i in d["duplicated"])
    for key in ("id", "node_id", "existing_content_id"):
        if d.get(key):
            return str(d[key])
    if isinstance(d.get("node"), dict):
        return str(d["node"].get("id", ""))
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="garden.ok")
    op = Text(f"  {result.op}", style="garden.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="garden.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="garden.id")
    elif key == "path":
        v = Text(str(value), style="garden.path")
    elif key == "title":
        v = Text(str(value), style="garden.title")
    elif isinstance(value, (dict, list)):
        v = Text(_json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _kind_text(kind: str) -> Text:
    return Text(kind, style=style_for_kind(kind))


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    code = f" [{err.code}]" if err else ""
    label = Text("ERROR", style="garden.error")
    op = Text(f"  {result.op}{code}", style="garden.op")
    sep = Text(" — ")
    console.print(label, op, sep, Text(msg))

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Node renderers ────────────────────────────────────────────────────

_NODE_KEYS = ("id", "title", "slug", "kind", "parent_id", "display_order", "path")


def _render_mutation(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render create/move/trash results."""
    _status_line(console, result)
    for key in (*_NODE_KEYS, "node_id", "trashed"):
        if key in result.data:
            _field(console, key, result.data[key])
    if verbose:
        _render_meta(console, result)


def _render_node(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render get_node as a panel: attributes, then the payload."""
    d = result.data
    lines = []
    for key in ("slug", "kind", "parent_id", "path", "display_order", "is_published", "updated_at"):
        val = d.get(key)
        if val not in (None, ""):
            lines.append(f"{key}: {val}")
    payload = d.get("payload")
    if payload:
        lines.append("")
        for key, val in payload.items():
            if key == "kind" or val in (None, "", {}, []):
                continue
            text = _json.dumps(val) if isinstance(val, (dict, list)) else str(val)
            lines.append(f"{key}: {text}")

    kind = str(d.get("kind", ""))
    title = f"{d.get('id', '?')} — {d.get('title', 'Untitled')}"
    console.print(
        Panel(
            Text("\n".join(lines)),
            title=Text(title),
            border_style=style_for_kind(kind) or "dim",
            expand=False,
        )
    )
    if verbose:
        _render_meta(console, result)


def _render_children(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render list_children as a table in display order."""
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("ID", style="garden.id", no_wrap=True)
    table.add_column("Title", style="garden.title")
    table.add_column("Kind")
    if verbose:
        table.add_column("Slug", style="dim")
    for item in items:
        row: list[Any] = [
            str(item.get("display_order", "")),
            str(item.get("id", "")),
            str(item.get("title", "")),
            _kind_text(str(item.get("kind", ""))),
        ]
        if verbose:
            row.append(str(item.get("slug", "")))
        table.add_row(*row)
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} items")


def _render_tree(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render get_tree as a Rich tree."""
    roots = result.data.get("tree", [])
    if not roots:
        console.print("[dim](empty)[/dim]")
        return

    tree = Tree(Text("garden", style="garden.op"))
    stack: list[tuple[Tree, dict[str, Any]]] = [(tree, r) for r in reversed(roots)]
    while stack:
        branch, item = stack.pop()
        label = Text(str(item.get("title", "")), style="garden.title")
        label.append(f"  {item.get('kind', '')}", style=style_for_kind(str(item.get("kind", ""))))
        if verbose:
            label.append(f"  {item.get('id', '')}", style="garden.id")
        child_branch = branch.add(label)
        stack.extend((child_branch, c) for c in reversed(item.get("children", [])))
    console.print(tree)
    console.print(f"\n{result.data.get('count', 0)} nodes")


def _render_ancestors(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render get_ancestors as a breadcrumb line."""
    crumbs = [str(a.get("title", "")) for a in result.data.get("ancestors", [])]
    console.print(" / ".join(crumbs) if crumbs else "[dim](root)[/dim]")


def _render_duplicate(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render duplicate_nodes: one line per copy, then skips."""
    _status_line(console, result)
    duplicated = result.data.get("duplicated", [])
    skipped = result.data.get("skipped", [])
    for item in duplicated:
        console.print(
            f"  [garden.id]{item['original_id']}[/garden.id] → "
            f"[garden.id]{item['new_id']}[/garden.id]  {escape(str(item['title']))}"
        )
    for item in skipped:
        reason = escape(str(item["reason"]))
        console.print(f"  [garden.warning]skipped[/garden.warning] {item['id']}: {reason}")
    _field(console, "duplicated", len(duplicated))
    _field(console, "skipped", len(skipped))


# ── Upload renderers ──────────────────────────────────────────────────


def _render_upload(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render initiate/finalize/upload_file results."""
    _status_line(console, result)
    d = result.data
    node = d.get("node")
    if isinstance(node, dict):
        for key in ("id", "title", "slug", "parent_id"):
            if key in node:
                _field(console, key, node[key])
    for key in (
        "is_duplicate",
        "existing_content_id",
        "node_id",
        "file_name",
        "upload_status",
        "storage_key",
        "upload_url",
        "expires_in_seconds",
        "storage_url",
        "width",
        "height",
        "error",
    ):
        if key in d:
            _field(console, key, d[key])
    if verbose:
        _render_meta(console, result)


# ── Check renderers ───────────────────────────────────────────────────


def _render_check(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render check results with issues grouped by category."""
    issues = result.data.get("issues", [])
    count = result.data.get("count", len(issues))

    if count == 0:
        console.print("[garden.ok]OK[/garden.ok]  No issues found.")
        return

    severity_styles = {"error": "garden.error", "warning": "garden.warning", "info": "dim"}

    by_category: dict[str, list[dict[str, Any]]] = {}
    for issue in issues:
        cat = str(issue.get("category", "unknown"))
        by_category.setdefault(cat, []).append(issue)

    for cat, cat_issues in by_category.items():
        console.print(f"\n[bold]{cat}[/bold]")
        for issue in cat_issues:
            sev = str(issue.get("severity", "warning"))
            style = severity_styles.get(sev, "")
            prefix = f"[{style}]{sev}[/{style}]" if style else sev
            node_id = issue.get("node_id")
            nid = f" \\[{node_id}]" if node_id else ""
            console.print(f"  {prefix}{nid}: {escape(str(issue.get('message', '')))}")

    errors = sum(1 for i in issues if i.get("severity") == "error")
    warnings = sum(1 for i in issues if i.get("severity") == "warning")
    console.print(f"\n{errors} errors, {warnings} warnings")


def _render_fix(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render fix and rebuild_paths results."""
    _status_line(console, result)
    d = result.data
    if "fixes" in d:
        _field(console, "fixes_applied", d.get("count", len(d["fixes"])))
        for fix in d["fixes"]:
            console.print(f"  - {fix}")
    if "updated" in d:
        _field(console, "updated", d["updated"])
    if verbose and "backup_path" in d:
        _field(console, "backup_path", d["backup_path"])


# ── Upgrade renderers ────────────────────────────────────────────────


def _render_upgrade(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render upgrade/migration results."""
    _status_line(console, result)
    d = result.data
    for key in ("applied_count", "pending_count", "current", "head", "backup_path", "message"):
        if key in d:
            _field(console, key, d[key])
    if verbose and d.get("pending"):
        console.print()
        for p in d["pending"]:
            console.print(f"  {p['revision']}: {p['description']}")


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Mutations
    "create_node": _render_mutation,
    "move_node": _render_mutation,
    "trash_node": _render_mutation,
    "duplicate_nodes": _render_duplicate,
    # Reads
    "get_node": _render_node,
    "list_children": _render_children,
    "get_tree": _render_tree,
    "get_ancestors": _render_ancestors,
    # Uploads
    "initiate_upload": _render_upload,
    "finalize_upload": _render_upload,
    "upload_file": _render_upload,
    # Check
    "check": _render_check,
    "fix": _render_fix,
    "rebuild_paths": _render_fix,
    # Upgrade
    "upgrade": _render_upgrade,
}
