"""Subcommand modules for sitectl.

Provides register_commands() which uses deferred imports to keep
``sitectl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from sitectl.commands.build import build
    from sitectl.commands.develop import develop
    from sitectl.commands.schema import schema

    cli.add_command(build)
    cli.add_command(develop)
    cli.add_command(schema)
