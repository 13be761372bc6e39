"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Configures logging and runs command coroutines against
a fresh :class:`~sitectl.app.App`, turning sitectl errors into exit code 1.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

import click

from sitectl.errors import SitectlError

if TYPE_CHECKING:
    from sitectl.app import App
    from sitectl.config.settings import SiteSettings

_T = TypeVar("_T")


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: SiteSettings) -> None:
        self.settings = settings

        from sitectl.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    def create_app(self) -> App:
        from sitectl.app import App

        return App(self.settings)

    def run(self, main: Callable[[App], Awaitable[_T]]) -> _T:
        """Run ``main(app)`` on a new event loop and shut the app down after.

        Raises ``click.ClickException`` for any :class:`SitectlError`.
        """
        app = self.create_app()

        async def _runner() -> _T:
            try:
                return await main(app)
            finally:
                await app.shutdown()

        try:
            return asyncio.run(_runner())
        except SitectlError as exc:
            raise click.ClickException(str(exc)) from exc
