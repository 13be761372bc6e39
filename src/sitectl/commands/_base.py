"""Command base class adding an ``--examples`` flag.

``--help`` stays short; ``--examples`` prints worked invocations and exits.
"""

from __future__ import annotations

from typing import Any

import click


class SiteCommand(click.Command):
    """Click command accepting an ``examples`` text block."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(
                click.Option(
                    ["--examples"],
                    is_flag=True,
                    is_eager=True,
                    expose_value=False,
                    callback=self._print_examples,
                    help="Show usage examples.",
                )
            )

    def _print_examples(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(self.examples)
        ctx.exit(0)
