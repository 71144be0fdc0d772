"""Tests for telemetry primitives: Span, trace_span, @traced."""

from __future__ import annotations

import time
from collections.abc import Generator

import pytest

from gardenctl.infrastructure.store import ContentStore
from gardenctl.services.result import ServiceError, ServiceResult
from gardenctl.services.telemetry import (
    Span,
    _current_span,
    disable_telemetry,
    enable_telemetry,
    annotate,
    get_current_span,
    trace_span,
    traced,
)
from tests.conftest import OWNER, create_folder


@pytest.fixture(autouse=True)
def _reset_telemetry_state() -> Generator[None]:
    """Ensure clean telemetry state for every test."""
    yield
    disable_telemetry()
    _current_span.set(None)


# ── Span unit tests ──────────────────────────────────────────────────


class TestSpan:
    def test_duration_before_end_is_zero(self) -> None:
        assert Span(name="test").duration_ms == 0.0

    def test_duration_after_end(self) -> None:
        span = Span(name="test")
        time.sleep(0.005)
        span.end()
        assert span.duration_ms > 0

    def test_to_dict_minimal(self) -> None:
        span = Span(name="root")
        span.end()
        d = span.to_dict()
        assert d["name"] == "root"
        assert "duration_ms" in d
        assert "children" not in d
        assert "annotations" not in d

    def test_to_dict_with_children(self) -> None:
        root = Span(name="root")
        child = Span(name="child", parent=root)
        root.children.append(child)
        child.end()
        root.end()
        d = root.to_dict()
        assert [c["name"] for c in d["children"]] == ["child"]

    def test_annotate(self) -> None:
        span = Span(name="test")
        span.annotate("rows", 42)
        span.end()
        assert span.to_dict()["annotations"] == {"rows": 42}


# ── trace_span tests ─────────────────────────────────────────────────


class TestTraceSpan:
    def test_disabled_yields_none(self) -> None:
        with trace_span("test") as span:
            assert span is None

    def test_no_root_yields_none(self) -> None:
        enable_telemetry()
        with trace_span("test") as span:
            assert span is None

    def test_enabled_with_root(self) -> None:
        enable_telemetry()
        root = Span(name="root")
        token = _current_span.set(root)
        try:
            with trace_span("child") as span:
                assert span is not None
                assert span.name == "child"
            assert len(root.children) == 1
            assert root.children[0].end_time is not None
        finally:
            _current_span.reset(token)

    def test_nested_spans(self) -> None:
        enable_telemetry()
        root = Span(name="root")
        token = _current_span.set(root)
        try:
            with trace_span("a"), trace_span("b"):
                pass
            assert root.children[0].name == "a"
            assert root.children[0].children[0].name == "b"
        finally:
            _current_span.reset(token)

    def test_initial_annotations(self) -> None:
        enable_telemetry()
        root = Span(name="root")
        token = _current_span.set(root)
        try:
            with trace_span("put", size=5) as span:
                assert span is not None
            assert root.children[0].annotations == {"size": 5}
        finally:
            _current_span.reset(token)


class TestAnnotate:
    def test_noop_when_disabled(self) -> None:
        annotate(rows=1)

    def test_annotates_innermost_span(self) -> None:
        enable_telemetry()
        root = Span(name="root")
        token = _current_span.set(root)
        try:
            with trace_span("stage") as span:
                annotate(rows=3)
            assert span.annotations == {"rows": 3}
            assert root.annotations == {}
        finally:
            _current_span.reset(token)


# ── @traced decorator tests ──────────────────────────────────────────


class TestTracedDecorator:
    def test_noop_when_disabled(self) -> None:
        @traced
        def my_func() -> ServiceResult:
            return ServiceResult(ok=True, op="test")

        assert my_func().meta is None

    def test_injects_meta_when_enabled(self) -> None:
        @traced
        def my_func() -> ServiceResult:
            return ServiceResult(ok=True, op="test")

        enable_telemetry()
        result = my_func()
        assert result.meta is not None
        assert result.meta["telemetry"]["name"].endswith("my_func")
        assert result.meta["telemetry"]["duration_ms"] >= 0

    def test_preserves_existing_meta(self) -> None:
        @traced
        def my_func() -> ServiceResult:
            return ServiceResult(ok=True, op="test", meta={"existing": "data"})

        enable_telemetry()
        result = my_func()
        assert result.meta["existing"] == "data"
        assert "telemetry" in result.meta

    def test_non_service_result_passthrough(self) -> None:
        @traced
        def my_func() -> str:
            return "hello"

        enable_telemetry()
        assert my_func() == "hello"

    def test_exception_propagates(self) -> None:
        @traced
        def my_func() -> ServiceResult:
            msg = "boom"
            raise ValueError(msg)

        enable_telemetry()
        with pytest.raises(ValueError, match="boom"):
            my_func()
        assert _current_span.get() is None

    def test_error_result_gets_telemetry(self) -> None:
        @traced
        def my_func() -> ServiceResult:
            return ServiceResult(
                ok=False,
                op="test",
                error=ServiceError(code="FAIL", message="oops"),
            )

        enable_telemetry()
        result = my_func()
        assert not result.ok
        assert "telemetry" in result.meta

    def test_nested_traced_only_outer_injects(self) -> None:
        @traced
        def inner() -> ServiceResult:
            return ServiceResult(ok=True, op="inner")

        @traced
        def outer() -> ServiceResult:
            assert inner().meta is None
            return ServiceResult(ok=True, op="outer")

        enable_telemetry()
        result = outer()
        [child] = result.meta["telemetry"]["children"]
        assert child["name"].endswith("inner")


class TestGetCurrentSpan:
    def test_returns_none_when_disabled(self) -> None:
        assert get_current_span() is None

    def test_returns_span_when_enabled(self) -> None:
        enable_telemetry()
        root = Span(name="root")
        token = _current_span.set(root)
        try:
            assert get_current_span() is root
        finally:
            _current_span.reset(token)


# ── Spans emitted by real services ──────────────────────────────────


class TestTracedServices:
    def test_create_node_spans(self, store: ContentStore) -> None:
        from gardenctl.services.content import ContentService

        enable_telemetry()
        result = ContentService(store).create_node(OWNER, "Traced")
        assert result.ok
        tel = result.meta["telemetry"]
        assert "ContentService.create_node" in tel["name"]
        assert "persist" in [c["name"] for c in tel.get("children", [])]

    def test_upload_file_spans(self, store: ContentStore) -> None:
        from gardenctl.services.content import ContentService

        enable_telemetry()
        result = ContentService(store).upload_file(OWNER, "a.txt", b"hello")
        names = [c["name"] for c in result.meta["telemetry"].get("children", [])]
        assert "put" in names
        assert "extract_metadata" in names

    def test_duplicate_spans(self, store: ContentStore) -> None:
        from gardenctl.services.content import ContentService

        folder = create_folder(store, "Folder")
        enable_telemetry()
        result = ContentService(store).duplicate_nodes([folder["id"]], OWNER)
        names = [c["name"] for c in result.meta["telemetry"].get("children", [])]
        assert names == [f"duplicate:{folder['id']}"]

    def test_check_spans(self, store: ContentStore) -> None:
        from gardenctl.services.check import CheckService

        enable_telemetry()
        result = CheckService(store).check(OWNER)
        names = [c["name"] for c in result.meta["telemetry"].get("children", [])]
        assert names == [
            "payload_consistency",
            "parent_structure",
            "materialized_paths",
            "sibling_ordering",
            "slugs",
        ]

    def test_move_annotates_path_rewrites(self, store: ContentStore) -> None:
        from gardenctl.services.content import ContentService

        target = create_folder(store, "Target")
        moving = create_folder(store, "Moving")
        create_folder(store, "Inner", parent_id=moving["id"])
        enable_telemetry()
        result = ContentService(store).move_node(moving["id"], OWNER, target["id"])
        assert result.meta["telemetry"]["annotations"] == {"paths_rewritten": 2}

    def test_check_annotates_issue_count(self, store: ContentStore) -> None:
        from gardenctl.services.check import CheckService

        create_folder(store, "Folder")
        enable_telemetry()
        tel = CheckService(store).check(OWNER).meta["telemetry"]
        assert tel["annotations"] == {"issues": 0}
        assert tel["children"][0]["annotations"] == {"nodes": 1}
