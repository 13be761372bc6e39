"""Bootstrap phase descriptors."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sitectl.app.core import App


class BootstrapPhase(IntEnum):
    """Indexes of the standard phases, usable as ``bootstrap()`` targets."""

    INITIALIZE = 0
    RUN_PLUGINS = 1
    CREATE_SCHEMA = 2
    GENERATE = 3


@dataclass(frozen=True)
class Phase:
    """One ordered bootstrap step. ``run`` is always awaited."""

    title: str
    run: Callable[[App], Awaitable[Any]]
    order: int


@dataclass(frozen=True)
class PhaseRecord:
    """Wall time spent in a completed phase, in seconds."""

    title: str
    elapsed: float
