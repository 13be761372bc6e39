"""Queue-backed event bus for plugin-to-orchestrator signaling.

Plugins emit ``broadcast`` and ``generate_routes`` through the bus. Emission
is fire-and-forget: the event is put on an unbounded ``asyncio.Queue`` and a
single consumer task delivers it to every subscriber, one at a time, in
subscription order. Nothing is dropped and nothing is returned to the
emitter. Events emitted before :meth:`EventBus.start` stay queued until the
consumer runs.

INVARIANT: Subscriber failures are warnings, never errors.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any

from sitectl.plugins.hookspecs import EventName

logger = logging.getLogger(__name__)

Subscriber = Callable[[Any], Awaitable[None] | None]


class EventBus:
    """Single-consumer event queue with ordered, isolated delivery."""

    def __init__(self) -> None:
        self._subscribers: dict[EventName, list[Subscriber]] = defaultdict(list)
        self._queue: asyncio.Queue[tuple[EventName, Any]] = asyncio.Queue()
        self._consumer: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def subscribe(self, event: EventName | str, handler: Subscriber) -> None:
        """Add *handler* for *event*; handlers run in subscription order."""
        self._subscribers[EventName(event)].append(handler)

    def emit(self, event: EventName | str, payload: Any = None) -> None:
        """Queue *event* for delivery and return immediately."""
        name = EventName(event)
        self._queue.put_nowait((name, payload))
        logger.debug("Queued event %s (pending=%d)", name.value, self._queue.qsize())

    @property
    def pending(self) -> int:
        """Number of events waiting for delivery."""
        return self._queue.qsize()

    @property
    def is_running(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    def start(self) -> None:
        """Start the consumer task on the running event loop."""
        if self.is_running:
            return
        self._consumer = asyncio.get_running_loop().create_task(
            self._consume(), name="sitectl-event-bus"
        )

    async def drain(self) -> None:
        """Wait until every queued event has been delivered.

        Without a running consumer the pending events are delivered inline.
        """
        if self.is_running:
            await self._queue.join()
            return
        while not self._queue.empty():
            event, payload = self._queue.get_nowait()
            try:
                await self._deliver(event, payload)
            finally:
                self._queue.task_done()

    async def shutdown(self) -> None:
        """Deliver what is queued, then stop the consumer."""
        await self.drain()
        if self._consumer is not None:
            self._consumer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._consumer
            self._consumer = None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _consume(self) -> None:
        while True:
            event, payload = await self._queue.get()
            try:
                await self._deliver(event, payload)
            finally:
                self._queue.task_done()

    async def _deliver(self, event: EventName, payload: Any) -> None:
        for handler in list(self._subscribers.get(event, ())):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.warning("Subscriber for %s failed", event.value, exc_info=True)
