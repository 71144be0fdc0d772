"""Telemetry primitives — Span, @traced, trace_span, annotate.

Spans are only built when ``--verbose`` switched telemetry on; otherwise
every helper is a single ContextVar lookup.  The outermost ``@traced``
service call owns the span tree and attaches it to
``ServiceResult.meta["telemetry"]``, which the renderers print as a timing
tree under the result.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from gardenctl.services.result import ServiceResult

_log = structlog.get_logger("gardenctl.telemetry")

_verbose_enabled: ContextVar[bool] = ContextVar("_verbose_enabled", default=False)
_current_span: ContextVar[Span | None] = ContextVar("_current_span", default=None)


@dataclass
class Span:
    """One timed step of a store operation (a service call or a stage inside it)."""

    name: str
    parent: Span | None = None
    children: list[Span] = field(default_factory=list)
    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None
    annotations: dict[str, Any] = field(default_factory=dict)

    @property
    def duration_ms(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time) * 1000

    def end(self) -> None:
        self.end_time = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            data["annotations"] = dict(self.annotations)
        if self.children:
            data["children"] = [c.to_dict() for c in self.children]
        return data


def _open(name: str, parent: Span | None) -> tuple[Span, Token[Span | None]]:
    span = Span(name=name, parent=parent)
    if parent is not None:
        parent.children.append(span)
    return span, _current_span.set(span)


def _close(span: Span, token: Token[Span | None], *, ok: bool) -> None:
    span.end()
    _current_span.reset(token)
    _log.debug(
        "span.complete",
        span_name=span.name,
        duration_ms=round(span.duration_ms, 2),
        ok=ok,
        children=len(span.children),
        **span.annotations,
    )


@contextmanager
def trace_span(name: str, **annotations: Any) -> Generator[Span | None]:
    """Time a stage of the enclosing traced call.

    Yields None when telemetry is off or no ``@traced`` call is running,
    so stages in plain helper code cost nothing.
    """
    parent = _current_span.get() if _verbose_enabled.get() else None
    if parent is None:
        yield None
        return

    span, token = _open(name, parent)
    span.annotations.update(annotations)
    ok = False
    try:
        yield span
        ok = True
    finally:
        _close(span, token, ok=ok)


def annotate(**values: Any) -> None:
    """Attach key/value facts (row counts, sizes) to the active span, if any."""
    span = get_current_span()
    if span is not None:
        span.annotations.update(values)


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Time a service method; the outermost call injects the tree into meta."""

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _verbose_enabled.get():
            return func(*args, **kwargs)

        parent = _current_span.get()
        span, token = _open(func.__qualname__, parent)
        try:
            result = func(*args, **kwargs)
        except Exception:
            _close(span, token, ok=False)
            raise
        _close(span, token, ok=not isinstance(result, ServiceResult) or result.ok)

        if parent is None and isinstance(result, ServiceResult):
            meta = {**(result.meta or {}), "telemetry": span.to_dict()}
            return result.model_copy(update={"meta": meta})  # type: ignore[return-value]
        return result

    return wrapper


def enable_telemetry() -> None:
    """Switch span collection on for the current context (``--verbose``)."""
    _verbose_enabled.set(True)


def disable_telemetry() -> None:
    _verbose_enabled.set(False)


def get_current_span() -> Span | None:
    """The innermost open span, or None when telemetry is off."""
    if not _verbose_enabled.get():
        return None
    return _current_span.get()
