"""Pluggy hook specifications for the sitectl bootstrap lifecycle.

Hooks are called by :class:`~sitectl.plugins.runner.PluginRunner`, one handler
at a time in registration order. Handlers may be plain functions or
coroutines.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

import pluggy

if TYPE_CHECKING:
    from sitectl.store import ContentStore

PROJECT_NAME = "sitectl"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class HookName(str, Enum):
    """Lifecycle hooks the bootstrap orchestrator calls."""

    INIT = "init"
    CREATE_SCHEMA_QUERIES = "create_schema_queries"
    AFTER_BOOTSTRAP = "after_bootstrap"


class EventName(str, Enum):
    """Free-form events plugins emit to signal the orchestrator."""

    BROADCAST = "broadcast"
    GENERATE_ROUTES = "generate_routes"


class SitectlHookSpec:
    """Hook specifications for the sitectl plugin system."""

    @hookspec
    def init(self) -> None:
        """Called during the Initialize phase, before plugins run."""

    @hookspec
    def create_schema_queries(self, store: ContentStore) -> dict[str, Any] | None:
        """Return ``name -> GraphQLField`` entries to add to the root Query type."""

    @hookspec
    def after_bootstrap(self) -> None:
        """Called once after the requested bootstrap phases complete."""
