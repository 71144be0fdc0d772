"""Shared pytest fixtures and test helpers for gardenctl tests."""

from __future__ import annotations

from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
import structlog
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from gardenctl.config.settings import GardenSettings
from gardenctl.infrastructure.database.engine import init_database
from gardenctl.infrastructure.store import ContentStore
from gardenctl.services.telemetry import disable_telemetry

OWNER = "alice"
OTHER_OWNER = "bob"


@pytest.fixture(autouse=True)
def _reset_cli_state() -> Generator[None]:
    """Undo per-invocation globals: ``-v`` telemetry and the bound log context."""
    yield
    disable_telemetry()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Generator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def store_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Temporary store directory, isolated from any ambient config."""
    for var in ("GARDENCTL_CONFIG", "GARDENCTL_OWNER", "GARDENCTL_STORE_ROOT"):
        monkeypatch.delenv(var, raising=False)
    return tmp_path


@pytest.fixture
def settings(store_root: Path) -> GardenSettings:
    return GardenSettings.from_cli(store_root=store_root)


@pytest.fixture
def make_store(store_root: Path) -> Generator[Callable[..., ContentStore]]:
    """Factory for stores on the temp root; extra kwargs go to ContentStore.

    ``settings_overrides`` are passed to ``GardenSettings.from_cli``.
    """
    created: list[ContentStore] = []

    def factory(*, settings_overrides: dict[str, Any] | None = None, **kwargs: Any) -> ContentStore:
        s = GardenSettings.from_cli(store_root=store_root, **(settings_overrides or {}))
        store = ContentStore(s, **kwargs)
        created.append(store)
        return store

    try:
        yield factory
    finally:
        for store in created:
            store.close()


@pytest.fixture
def store(make_store: Callable[..., ContentStore]) -> ContentStore:
    """Fully initialized store on a temp directory."""
    return make_store()


@pytest.fixture
def _isolated_store(store_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp store root so the CLI creates an isolated store.

    Use via ``@pytest.mark.usefixtures("_isolated_store")`` on command test
    classes.
    """
    monkeypatch.chdir(store_root)


# ---------------------------------------------------------------------------
# Shared test helpers (used across service test modules)
# ---------------------------------------------------------------------------


def create_folder(
    store: ContentStore,
    title: str,
    parent_id: str | None = None,
    owner_id: str = OWNER,
    **kwargs: Any,
) -> dict[str, Any]:
    """Create a folder via ContentService, asserting success."""
    from gardenctl.services.content import ContentService

    result = ContentService(store).create_node(owner_id, title, parent_id=parent_id, **kwargs)
    assert result.ok, result.error
    return result.data


def create_note(
    store: ContentStore,
    title: str,
    parent_id: str | None = None,
    owner_id: str = OWNER,
    markdown: str = "",
) -> dict[str, Any]:
    """Create a note via ContentService, asserting success."""
    from gardenctl.services.content import ContentService

    result = ContentService(store).create_node(
        owner_id,
        title,
        parent_id=parent_id,
        payload={"note": {"markdown": markdown}},
    )
    assert result.ok, result.error
    return result.data


def fetch_node(store: ContentStore, node_id: str) -> Any:
    """Load a node directly from storage (tombstones included)."""
    with store.transaction() as txn:
        return txn.get_node(node_id, with_payload=True, include_deleted=True)


def child_titles(store: ContentStore, parent_id: str | None, owner_id: str = OWNER) -> list[str]:
    """Titles of the live children of *parent_id* in display order."""
    from gardenctl.services.content import ContentService

    result = ContentService(store).list_children(owner_id, parent_id)
    assert result.ok, result.error
    return [item["title"] for item in result.data["items"]]


def child_orders(store: ContentStore, parent_id: str | None, owner_id: str = OWNER) -> list[int]:
    from gardenctl.services.content import ContentService

    result = ContentService(store).list_children(owner_id, parent_id)
    assert result.ok, result.error
    return [item["display_order"] for item in result.data["items"]]
