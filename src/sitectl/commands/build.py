"""build — bootstrap the site and generate its output artifacts."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from sitectl.app.phases import BootstrapPhase
from sitectl.commands._base import SiteCommand

if TYPE_CHECKING:
    from sitectl.app import App
    from sitectl.commands._context import AppContext


@click.command(
    cls=SiteCommand,
    examples="""\
  # Build the site in the current directory
  sitectl build

  # Build another site with debug logging
  sitectl -v --context ./docs build""",
)
@click.pass_obj
def build(ctx: AppContext) -> None:
    """Run every bootstrap phase and write generated files."""
    from sitectl.output.console import render_bootstrap_report

    async def main(app: App) -> App:
        return await app.bootstrap(BootstrapPhase.GENERATE)

    app = ctx.run(main)
    click.echo(render_bootstrap_report(app.timings, site_name=ctx.settings.site.name), nl=False)
