"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Opens the ContentStore on first use, closes it
when the command finishes, and turns each ServiceResult into output plus
an exit code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from gardenctl.config.logging import bind_store_context, configure_logging
from gardenctl.output.formatters import OutputSettings, format_result
from gardenctl.services.telemetry import enable_telemetry

if TYPE_CHECKING:
    from gardenctl.config.settings import GardenSettings
    from gardenctl.infrastructure.store import ContentStore
    from gardenctl.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Subcommands access it via ``@click.pass_obj``.  The store is lazily
    initialized on first use so ``--help`` and ``--examples`` never touch
    the database.
    """

    def __init__(self, settings: GardenSettings) -> None:
        self.settings = settings
        self._store: ContentStore | None = None

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        bind_store_context(owner=settings.owner, store_root=settings.store_root)
        if settings.verbose:
            enable_telemetry()

    @property
    def owner(self) -> str:
        """Owner id every command acts as."""
        return self.settings.owner

    @property
    def store(self) -> ContentStore:
        """The store instance (created lazily on first access)."""
        if self._store is None:
            from gardenctl.infrastructure.store import ContentStore

            self._store = ContentStore(self.settings)
        return self._store

    def close(self) -> None:
        """Release the database engine if a command opened the store."""
        if self._store is not None:
            self._store.close()
            self._store = None

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
