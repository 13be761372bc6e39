"""schema — print the GraphQL schema (bootstraps up to schema creation)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click
from graphql import print_schema

from sitectl.app.phases import BootstrapPhase
from sitectl.commands._base import SiteCommand

if TYPE_CHECKING:
    from sitectl.app import App
    from sitectl.commands._context import AppContext


@click.command(
    cls=SiteCommand,
    examples="""\
  # Print the schema as SDL
  sitectl schema

  # Save it for editor tooling
  sitectl schema > schema.graphql""",
)
@click.pass_obj
def schema(ctx: AppContext) -> None:
    """Print the GraphQL schema in SDL form."""

    async def main(app: App) -> str:
        await app.bootstrap(BootstrapPhase.CREATE_SCHEMA)
        return print_schema(app.schema)

    click.echo(ctx.run(main))
