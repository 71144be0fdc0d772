"""Root CLI group for gardenctl with global flags and command registration."""

from __future__ import annotations

from pathlib import Path

import click

from gardenctl import __version__
from gardenctl.commands import register_commands
from gardenctl.commands._context import AppContext
from gardenctl.config.settings import GardenSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="gardenctl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("--owner", default=None, help="Owner id to act as (default: from config).")
@click.option(
    "-C",
    "--store-root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Store directory (default: discovered from the cwd).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    owner: str | None,
    store_root: Path | None,
) -> None:
    """gardenctl — hierarchical content store."""
    ctx.ensure_object(dict)
    settings = GardenSettings.from_cli(
        config_path=config_path,
        store_root=store_root,
        json_output=json_output or None,
        quiet=quiet or None,
        verbose=verbose or None,
        log_json=log_json or None,
        owner=owner,
    )
    ctx.obj = AppContext(settings)
    ctx.call_on_close(ctx.obj.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
