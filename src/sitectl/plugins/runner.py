"""Plugin loading and sequential hook dispatch.

Plugins are configured as ``[[plugins]]`` entries in ``sitectl.toml``. Each
entry resolves to a callable that is invoked as ``entry(api, options)`` where
*api* is a :class:`PluginAPI` bound to the plugin's identity. Through it the
plugin registers hook handlers, emits events and reads the store.

Hook handlers live in a pluggy ``PluginManager`` so their signatures are
validated against :class:`~sitectl.plugins.hookspecs.SitectlHookSpec`, but
the runner drives the calls itself: one handler at a time, in registration
order, awaiting coroutines before moving on. The first failure stops the
chain and is attributed to the plugin that registered the handler.
"""

from __future__ import annotations

import asyncio
import functools
import importlib
import importlib.util
import inspect
import itertools
import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass
from importlib.metadata import entry_points
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pluggy

from sitectl.errors import HookError
from sitectl.plugins.event_bus import EventBus, Subscriber
from sitectl.plugins.hookspecs import PROJECT_NAME, EventName, HookName, SitectlHookSpec, hookimpl

if TYPE_CHECKING:
    from sitectl.app import App
    from sitectl.app.queue import AssetQueue
    from sitectl.config.models import PluginEntry
    from sitectl.config.settings import SiteSettings
    from sitectl.store import ContentStore

ENTRY_POINT_GROUP = "sitectl.plugins"
LOCAL_PLUGIN_DIR = Path(".sitectl") / "plugins"

# Name used in HookError when a plugin's entry callable itself fails.
SETUP_HOOK = "setup"

BUILTIN_PLUGINS: dict[str, str] = {
    "metadata": "sitectl.plugins.builtins.metadata:setup",
}

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HookRegistration:
    """A handler registered for one hook by one plugin."""

    name: HookName
    handler: Callable[..., Any]
    plugin_id: str


class _HandlerShim:
    """Pluggy plugin object carrying exactly one registered handler."""

    def __init__(self, registration: HookRegistration) -> None:
        self.registration = registration


class PluginAPI:
    """Handle given to a plugin's entry callable, bound to that plugin."""

    def __init__(self, runner: PluginRunner, plugin_id: str) -> None:
        self._runner = runner
        self._plugin_id = plugin_id

    @property
    def plugin_id(self) -> str:
        return self._plugin_id

    @property
    def store(self) -> ContentStore:
        return self._runner.app.store

    @property
    def queue(self) -> AssetQueue:
        return self._runner.app.queue

    @property
    def config(self) -> SiteSettings:
        return self._runner.app.config

    def register_hook(self, name: HookName | str, handler: Callable[..., Any]) -> None:
        self._runner.register_hook(self._plugin_id, name, handler)

    def emit(self, event: EventName | str, payload: Any = None) -> None:
        self._runner.emit(event, payload)


class PluginRunner:
    """Loads configured plugins and calls hooks across them."""

    def __init__(self, app: App) -> None:
        self.app = app
        self.bus = EventBus()
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(SitectlHookSpec)
        self._counter = itertools.count(1)
        self._registrations: list[HookRegistration] = []
        self._loaded: list[str] = []
        # pluggy registration name -> plugin id
        self._owners: dict[str, str] = {}
        self._hook_locks = {name: asyncio.Lock() for name in HookName}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """Load built-in, local and configured plugins, in that order."""
        for plugin_id, use in BUILTIN_PLUGINS.items():
            await self._load(plugin_id, self._resolve(plugin_id, use), {})

        local_dir = self.app.config.context / LOCAL_PLUGIN_DIR
        for plugin_id, entry in self._discover_local(local_dir):
            await self._load(plugin_id, entry, {})

        for plugin in self.app.config.plugins:
            await self.load_plugin(plugin)

    async def load_plugin(self, plugin: PluginEntry) -> None:
        """Resolve and set up a single configured plugin."""
        entry = self._resolve(plugin.plugin_id, plugin.use)
        await self._load(plugin.plugin_id, entry, dict(plugin.options))

    async def _load(
        self, plugin_id: str, entry: Callable[..., Any], options: dict[str, Any]
    ) -> None:
        api = PluginAPI(self, plugin_id)
        try:
            result = entry(api, options)
            if inspect.isawaitable(result):
                result = await result
            if result is not None and self._has_hook_impls(type(result)):
                self.register_plugin(result, name=plugin_id)
        except Exception as exc:
            raise HookError(SETUP_HOOK, plugin_id, exc) from exc

        self._loaded.append(plugin_id)
        logger.debug("Loaded plugin: %s", plugin_id)

    @staticmethod
    def _resolve(plugin_id: str, use: str) -> Callable[..., Any]:
        """Turn ``module:attr`` or an entry-point name into a callable."""
        try:
            if use in BUILTIN_PLUGINS:
                use = BUILTIN_PLUGINS[use]
            if ":" in use:
                module_name, _, attr = use.partition(":")
                target = importlib.import_module(module_name)
                for part in attr.split("."):
                    target = getattr(target, part)
                return target  # type: ignore[return-value]
            matches = list(entry_points(group=ENTRY_POINT_GROUP, name=use))
            if not matches:
                msg = f"No plugin named {use!r} in entry-point group {ENTRY_POINT_GROUP}"
                raise LookupError(msg)
            return matches[0].load()  # type: ignore[no-any-return]
        except Exception as exc:
            raise HookError(SETUP_HOOK, plugin_id, exc) from exc

    @staticmethod
    def _discover_local(local_dir: Path) -> list[tuple[str, Callable[..., Any]]]:
        """Import ``*.py`` files in *local_dir* that define ``setup(api, options)``.

        ``_``-prefixed files are skipped. Import failures are attributed to the
        file's plugin id.
        """
        if not local_dir.is_dir():
            return []

        found: list[tuple[str, Callable[..., Any]]] = []
        for py_file in sorted(local_dir.glob("*.py")):
            if py_file.name.startswith("_"):
                continue
            plugin_id = f"local:{py_file.stem}"
            module_name = f"sitectl_local_plugin_{py_file.stem}"
            try:
                spec = importlib.util.spec_from_file_location(module_name, py_file)
                if spec is None or spec.loader is None:
                    msg = f"Could not create module spec for {py_file}"
                    raise ImportError(msg)
                module = importlib.util.module_from_spec(spec)
                sys.modules[module_name] = module
                spec.loader.exec_module(module)
            except Exception as exc:
                sys.modules.pop(module_name, None)
                raise HookError(SETUP_HOOK, plugin_id, exc) from exc

            setup = getattr(module, "setup", None)
            if not callable(setup):
                logger.warning("Local plugin %s has no setup(api, options); skipped", py_file)
                continue
            found.append((plugin_id, setup))
        return found

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_hook(
        self, plugin_id: str, name: HookName | str, handler: Callable[..., Any]
    ) -> HookRegistration:
        """Register *handler* for hook *name* on behalf of *plugin_id*.

        Raises ``ValueError`` for unknown hook names and
        ``pluggy.PluginValidationError`` when the handler asks for arguments
        the hook does not provide.
        """
        hook_name = HookName(name)
        registration = HookRegistration(name=hook_name, handler=handler, plugin_id=plugin_id)

        @functools.wraps(handler)
        def impl(*args: Any, **kwargs: Any) -> Any:
            return handler(*args, **kwargs)

        shim = _HandlerShim(registration)
        setattr(shim, hook_name.value, hookimpl(impl))
        self._register(shim, plugin_id)
        self._registrations.append(registration)
        return registration

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a class-style plugin whose methods carry ``@hookimpl``.

        *name* is the plugin id used when its handlers fail; it defaults to the
        class name. The same id may be registered more than once.
        """
        plugin_id = name or plugin.__class__.__name__
        self._register(plugin, plugin_id)
        logger.debug("Registered plugin: %s", plugin_id)

    def _register(self, plugin: object, plugin_id: str) -> None:
        pluggy_name = f"{plugin_id}#{next(self._counter)}"
        self._pm.register(plugin, name=pluggy_name)
        self._owners[pluggy_name] = plugin_id

    def registrations(self, name: HookName | str | None = None) -> list[HookRegistration]:
        """Handlers registered through :meth:`register_hook`, in order."""
        if name is None:
            return list(self._registrations)
        hook_name = HookName(name)
        return [r for r in self._registrations if r.name is hook_name]

    def list_plugin_names(self) -> list[str]:
        """Ids of plugins whose entry callables have run."""
        return list(self._loaded)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def call_hook(self, name: HookName | str, **kwargs: Any) -> list[Any]:
        """Call every handler for *name* in order and collect the results.

        Raises :class:`HookError` naming the plugin of the first handler that
        fails; the handlers after it are not called. Overlapping calls for the
        same hook run one after the other.
        """
        hook_name = HookName(name)
        async with self._hook_locks[hook_name]:
            impls = self._ordered_impls(hook_name)
            logger.debug("Calling hook %s (%d handlers)", hook_name.value, len(impls))

            results: list[Any] = []
            for impl in impls:
                plugin_id = self._owners.get(impl.plugin_name, impl.plugin_name)
                try:
                    args = [kwargs[argname] for argname in impl.argnames]
                    result = impl.function(*args)
                    if inspect.isawaitable(result):
                        result = await result
                except Exception as exc:
                    raise HookError(hook_name.value, plugin_id, exc) from exc
                results.append(result)
            return results

    def _ordered_impls(self, hook_name: HookName) -> list[pluggy.HookImpl]:
        """Hook impls in call order: tryfirst, plain, trylast; each by registration."""
        caller = getattr(self._pm.hook, hook_name.value)
        impls = [i for i in caller.get_hookimpls() if not (i.wrapper or i.hookwrapper)]
        first = [i for i in impls if i.tryfirst]
        last = [i for i in impls if i.trylast]
        plain = [i for i in impls if not (i.tryfirst or i.trylast)]
        # pluggy stores trylast impls newest-first.
        return first + plain + last[::-1]

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: EventName | str, handler: Subscriber) -> None:
        """Subscribe *handler* to an internal event."""
        self.bus.subscribe(event, handler)

    def emit(self, event: EventName | str, payload: Any = None) -> None:
        """Fire-and-forget an internal event."""
        self.bus.emit(event, payload)

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        """Check whether *cls* has any methods decorated with ``@hookimpl``.

        Pluggy's ``HookimplMarker("sitectl")`` sets a ``sitectl_impl``
        attribute on decorated methods.
        """
        for name in dir(cls):
            if name.startswith("_"):
                continue
            method = getattr(cls, name, None)
            if callable(method) and getattr(method, f"{PROJECT_NAME}_impl", None):
                return True
        return False
