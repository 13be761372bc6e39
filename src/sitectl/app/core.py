"""App — the bootstrap orchestrator and the aggregate it builds.

One ``App`` is created per process and passed explicitly to everything that
needs it. ``bootstrap(phase)`` runs the fixed phase list up to and including
*phase*:

0. **Initialize**: create the store, asset queue, plugin runner and code
   generator; subscribe to plugin events; call the ``init`` hook.
1. **Run plugins**: load and set up every plugin.
2. **Create GraphQL schema**: collect ``create_schema_queries`` results and
   build the schema.
3. **Generate code**: build the route table and write all artifacts.

After bootstrap, plugins keep the output fresh through the event bus:
``broadcast`` pushes a message to live clients and rewrites the live-reload
artifact; ``generate_routes`` rebuilds routes and regenerates everything.
Failures on that path are logged and never stop the serve loop.

Regeneration policy: coalescing. At most one regeneration runs at a time. A
request that arrives while one is in flight marks the state dirty and waits
for a single follow-up pass, which serves every request that arrived during
the previous pass.
"""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from sitectl import __version__
from sitectl.app.clients import ClientRegistry
from sitectl.app.phases import BootstrapPhase, Phase, PhaseRecord
from sitectl.app.queue import AssetQueue
from sitectl.codegen import CodeGenerator
from sitectl.errors import BootstrapError, GenerationError, PhaseFailure
from sitectl.plugins.hookspecs import EventName, HookName
from sitectl.plugins.runner import PluginRunner
from sitectl.query import create_schema, execute_document, execute_source
from sitectl.routes import MatchedRoute, Router, RouteTable, create_routes
from sitectl.store import ContentStore

if TYPE_CHECKING:
    from graphql import DocumentNode, GraphQLSchema

    from sitectl.config.settings import SiteSettings

log = structlog.get_logger(__name__)


class App:
    """Bootstrap context owning every build component."""

    def __init__(self, config: SiteSettings, *, phases: Sequence[Phase] | None = None) -> None:
        self.config = config
        self.context = config.context
        self.clients = ClientRegistry()

        # Set as phases complete.
        self.store: ContentStore | None = None
        self.queue: AssetQueue | None = None
        self.plugins: PluginRunner | None = None
        self.generator: CodeGenerator | None = None
        self.schema: GraphQLSchema | None = None
        self.routes: RouteTable | None = None
        self.router: Router | None = None

        self.phases: tuple[Phase, ...] = tuple(
            sorted(phases if phases is not None else self.default_phases(), key=lambda p: p.order)
        )
        self.timings: list[PhaseRecord] = []

        self._generate_lock = asyncio.Lock()
        self._regen_task: asyncio.Future[None] | None = None
        self._regen_requested = False

    @staticmethod
    def default_phases() -> list[Phase]:
        return [
            Phase("Initialize", App.init, BootstrapPhase.INITIALIZE),
            Phase("Run plugins", App.run_plugins, BootstrapPhase.RUN_PLUGINS),
            Phase("Create GraphQL schema", App.create_schema, BootstrapPhase.CREATE_SCHEMA),
            Phase("Generate code", App.generate_files, BootstrapPhase.GENERATE),
        ]

    async def bootstrap(self, phase: int = BootstrapPhase.GENERATE) -> App:
        """Run phases ``0..phase`` in order, then the ``after_bootstrap`` hook.

        Raises :class:`PhaseFailure` for the first phase that fails; later
        phases and ``after_bootstrap`` are skipped and nothing is rolled back.
        """
        if not 0 <= phase < len(self.phases):
            msg = f"Bootstrap phase must be between 0 and {len(self.phases) - 1}, got {phase}"
            raise ValueError(msg)

        bootstrap_start = time.perf_counter()
        log.info("bootstrap.start", version=__version__, target=self.phases[phase].title)

        for index, current in enumerate(self.phases):
            if index > phase:
                break
            start = time.perf_counter()
            try:
                await current.run(self)
            except Exception as exc:
                log.error("phase.failed", phase=current.title, error=str(exc))
                raise PhaseFailure(current.title, exc) from exc

            record = PhaseRecord(current.title, time.perf_counter() - start)
            self.timings.append(record)
            log.info("phase.complete", phase=record.title, elapsed=round(record.elapsed, 3))

        await self._require(self.plugins, "plugin runner").call_hook(HookName.AFTER_BOOTSTRAP)

        log.info("bootstrap.finish", elapsed=round(time.perf_counter() - bootstrap_start, 3))
        return self

    # ------------------------------------------------------------------
    # Bootstrap phases
    # ------------------------------------------------------------------

    async def init(self) -> None:
        self.store = ContentStore()
        self.queue = AssetQueue(self)
        self.plugins = PluginRunner(self)
        self.generator = CodeGenerator(self)

        # Subscribed before plugins run: plugin setup may already emit.
        self.plugins.on(EventName.BROADCAST, self._on_broadcast)
        self.plugins.on(EventName.GENERATE_ROUTES, self._on_generate_routes)
        self.plugins.bus.start()

        await self.plugins.call_hook(HookName.INIT)

    async def run_plugins(self) -> None:
        await self._require(self.plugins, "plugin runner").run()

    async def create_schema(self) -> None:
        store = self._require(self.store, "store")
        results = await self._require(self.plugins, "plugin runner").call_hook(
            HookName.CREATE_SCHEMA_QUERIES, store=store
        )
        queries: dict[str, Any] = {}
        for result in results:
            if result:
                queries.update(result)
        self.schema = create_schema(store, queries=queries)

    async def generate_files(self) -> None:
        await self.regenerate_routes()

    # ------------------------------------------------------------------
    # Regeneration
    # ------------------------------------------------------------------

    async def regenerate_routes(self) -> None:
        """Rebuild routes from the current store and regenerate all artifacts.

        Calls made while a regeneration is running coalesce into one
        follow-up pass. Raises :class:`GenerationError` when the pass this
        call waited for fails.
        """
        self._regen_requested = True
        if self._regen_task is None or self._regen_task.done():
            self._regen_task = asyncio.ensure_future(self._regeneration_loop())
        await asyncio.shield(self._regen_task)

    async def _regeneration_loop(self) -> None:
        error: GenerationError | None = None
        while self._regen_requested:
            self._regen_requested = False
            try:
                await self._generate_all()
            except GenerationError as exc:
                error = exc
            else:
                error = None
        if error is not None:
            raise error

    async def _generate_all(self) -> None:
        generator = self._require(self.generator, "code generator")
        async with self._generate_lock:
            try:
                self.routes = create_routes(self._require(self.store, "store"))
                self.router = Router(self.routes, base=self.config.site.path_prefix)
            except Exception as exc:
                msg = f"Could not build the route table: {exc}"
                raise GenerationError(msg) from exc
            await generator.generate()

    # ------------------------------------------------------------------
    # Live clients
    # ------------------------------------------------------------------

    async def broadcast(self, message: Any, hot_reload: bool = True) -> None:
        """Send *message* as JSON to every live client.

        With *hot_reload* the live-reload artifact is rewritten afterwards.
        Client and generation failures are logged, never raised.
        """
        data = json.dumps(message)
        dropped = await self.clients.broadcast(data)
        log.debug("broadcast.sent", clients=len(self.clients), dropped=len(dropped))

        if not hot_reload:
            return
        target = self.config.develop.live_artifact
        try:
            generator = self._require(self.generator, "code generator")
            async with self._generate_lock:
                await generator.generate(target)
        except (BootstrapError, GenerationError) as exc:
            log.warning("hot_reload.failed", target=target, error=str(exc))

    async def _on_broadcast(self, message: Any) -> None:
        await self.broadcast(message)

    async def _on_generate_routes(self, _payload: Any) -> None:
        try:
            await self.regenerate_routes()
        except GenerationError as exc:
            log.warning("regeneration.failed", error=str(exc))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _query_context(self) -> dict[str, Any]:
        return {"store": self.store, "config": self.config}

    async def graphql(self, source: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Execute query text; returns ``{"data": ..., "errors"?: [...]}``."""
        schema = self._require(self.schema, "schema")
        result = await execute_source(
            schema, source, context=self._query_context(), variables=variables
        )
        return dict(result.formatted)

    async def graphql_document(
        self, document: DocumentNode, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Execute a parsed document; returns the same shape as :meth:`graphql`."""
        schema = self._require(self.schema, "schema")
        result = await execute_document(
            schema, document, context=self._query_context(), variables=variables
        )
        return dict(result.formatted)

    async def query_route_data(self, route: MatchedRoute | None) -> dict[str, Any]:
        """Run the page query of a matched route with its params and path."""
        if route is None or not route.entry.query:
            return {"data": {}}
        variables = {**route.params, "path": route.path}
        return await self.graphql(route.entry.query, variables)

    def match_route(self, path: str) -> MatchedRoute | None:
        return self._require(self.router, "router").match(path)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def resolve(self, path: str | Path) -> Path:
        return self.config.resolve(path)

    async def shutdown(self) -> None:
        """Flush pending plugin events and wait for a running regeneration."""
        if self.plugins is not None:
            await self.plugins.bus.shutdown()
        if self._regen_task is not None and not self._regen_task.done():
            try:
                await self._regen_task
            except GenerationError as exc:
                log.warning("regeneration.failed", error=str(exc))

    @staticmethod
    def _require(value: Any, what: str) -> Any:
        if value is None:
            msg = f"The {what} is not available yet; bootstrap further first"
            raise BootstrapError(msg)
        return value
