"""Tests for structlog configuration."""

from __future__ import annotations

import io
import json
import logging
from collections.abc import Generator

import pytest
import structlog

from gardenctl.config.logging import bind_store_context, configure_logging


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Restore root logger state after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    garden = logging.getLogger("gardenctl")
    garden_level = garden.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    garden.setLevel(garden_level)


class TestConfigureLogging:
    def test_verbose_enables_debug(self) -> None:
        configure_logging(verbose=True, log_json=False)
        assert logging.getLogger("gardenctl").level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING

    def test_non_verbose_sets_warning(self) -> None:
        configure_logging(verbose=False, log_json=False)
        assert logging.getLogger("gardenctl").level == logging.WARNING

    def test_json_mode_output(self) -> None:
        stream = io.StringIO()
        configure_logging(verbose=True, log_json=True, stream=stream)
        structlog.get_logger("gardenctl.test").warning("json test", answer=42)
        parsed = json.loads(stream.getvalue().strip())
        assert parsed["event"] == "json test"
        assert parsed["answer"] == 42
        assert parsed["level"] == "warning"
        assert parsed["logger"] == "gardenctl.test"
        assert "timestamp" in parsed

    def test_stdlib_logger_gets_structured_fields(self) -> None:
        stream = io.StringIO()
        configure_logging(verbose=True, log_json=True, stream=stream)
        logging.getLogger("gardenctl.services.ordering").debug("Moved %s", "n1")
        parsed = json.loads(stream.getvalue().strip())
        assert parsed["event"] == "Moved n1"
        assert parsed["level"] == "debug"
        assert parsed["logger"] == "gardenctl.services.ordering"

    def test_third_party_debug_is_suppressed(self) -> None:
        stream = io.StringIO()
        configure_logging(verbose=True, log_json=True, stream=stream)
        logging.getLogger("alembic").debug("migration noise")
        logging.getLogger("sqlalchemy.engine").info("SELECT 1")
        assert stream.getvalue() == ""

    def test_quiet_by_default(self) -> None:
        stream = io.StringIO()
        configure_logging(log_json=True, stream=stream)
        logging.getLogger("gardenctl.services.upload").info("not shown")
        assert stream.getvalue() == ""

    def test_idempotent_calls(self) -> None:
        configure_logging(verbose=True, log_json=False)
        configure_logging(verbose=True, log_json=True)
        assert len(logging.getLogger().handlers) == 1


class TestBindStoreContext:
    @pytest.fixture(autouse=True)
    def _clear_context(self) -> Generator[None]:
        yield
        structlog.contextvars.clear_contextvars()

    def test_owner_and_store_on_every_line(self, tmp_path) -> None:
        stream = io.StringIO()
        configure_logging(verbose=True, log_json=True, stream=stream)
        bind_store_context(owner="alice", store_root=tmp_path)
        logging.getLogger("gardenctl.services.duplicate").warning("Skipping n1")
        parsed = json.loads(stream.getvalue().strip())
        assert parsed["owner"] == "alice"
        assert parsed["store"] == str(tmp_path)

    def test_rebinding_replaces_owner(self, tmp_path) -> None:
        stream = io.StringIO()
        configure_logging(log_json=True, stream=stream)
        bind_store_context(owner="alice", store_root=tmp_path)
        bind_store_context(owner="bob", store_root=tmp_path)
        structlog.get_logger("gardenctl.test").warning("hello")
        assert json.loads(stream.getvalue().strip())["owner"] == "bob"
