"""Root CLI group for sitectl with global flags and command registration."""

from __future__ import annotations

from pathlib import Path

import click

from sitectl import __version__
from sitectl.commands import register_commands
from sitectl.commands._context import AppContext
from sitectl.config.settings import SiteSettings
from sitectl.errors import ConfigError


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="sitectl")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option(
    "--context",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Site root directory (default: location of sitectl.toml, else CWD).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    context: Path | None,
) -> None:
    """sitectl — site-build orchestrator."""
    ctx.ensure_object(dict)
    try:
        settings = SiteSettings.from_cli(
            config_path=config_path,
            context=context,
            verbose=verbose,
            log_json=log_json,
        )
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
