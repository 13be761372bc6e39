"""Extension layer — plugin loading and hook dispatch via pluggy.

Plugins set up through ``entry(api, options)`` and register hook handlers;
handlers run one at a time in registration order.
"""

from sitectl.plugins.event_bus import EventBus
from sitectl.plugins.hookspecs import EventName, HookName, hookimpl
from sitectl.plugins.runner import PluginAPI, PluginRunner

__all__ = ["EventBus", "EventName", "HookName", "PluginAPI", "PluginRunner", "hookimpl"]
