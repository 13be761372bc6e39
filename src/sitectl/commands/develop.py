"""develop — build the site, then serve live reload until interrupted."""

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
  # Serve on the configured [develop] host and port
  sitectl develop

  # Listen on all interfaces
  sitectl develop --host 0.0.0.0 --port 9000""",
)
@click.option("--host", default=None, help="Bind address (default: [develop].host).")
@click.option("--port", default=None, type=int, help="Listen port (default: [develop].port).")
@click.pass_obj
def develop(ctx: AppContext, host: str | None, port: int | None) -> None:
    """Bootstrap fully and serve the live-reload websocket and GraphQL endpoint."""
    from sitectl.server.dev_server import serve

    settings = ctx.settings.develop

    async def main(app: App) -> None:
        await app.bootstrap(BootstrapPhase.GENERATE)
        await serve(app, host=host or settings.host, port=port or settings.port)

    ctx.run(main)
