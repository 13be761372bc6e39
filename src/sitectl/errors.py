"""Exception hierarchy for sitectl.

Bootstrap-time failures (``PhaseFailure``, ``HookError``) are fatal to the
run. Failures after bootstrap (``GenerationError``, ``ClientWriteError``) are
logged by the live-reload loop and never stop it.
"""

from __future__ import annotations


class SitectlError(Exception):
    """Base class for all sitectl errors."""


class ConfigError(SitectlError):
    """The site configuration could not be loaded."""


class BootstrapError(SitectlError):
    """Bootstrap did not complete."""


class PhaseFailure(BootstrapError):
    """A bootstrap phase raised; earlier phases' side effects persist."""

    def __init__(self, phase: str, cause: BaseException) -> None:
        self.phase = phase
        self.cause = cause
        super().__init__(f"Phase {phase!r} failed: {cause}")


class HookError(SitectlError):
    """A plugin handler failed while a hook was being called."""

    def __init__(self, hook_name: str, plugin_id: str, cause: BaseException) -> None:
        self.hook_name = hook_name
        self.plugin_id = plugin_id
        self.cause = cause
        super().__init__(f"Plugin {plugin_id!r} failed in hook {hook_name!r}: {cause}")


class GenerationError(SitectlError):
    """Code generation failed for one target (``None`` means the full set)."""

    def __init__(self, message: str, *, target: str | None = None) -> None:
        self.target = target
        super().__init__(message)


class ClientWriteError(SitectlError):
    """Writing to a single live-reload client failed."""

    def __init__(self, client_id: str, cause: BaseException | None = None) -> None:
        self.client_id = client_id
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Write to client {client_id!r} failed{detail}")
