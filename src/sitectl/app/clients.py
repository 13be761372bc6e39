"""Live-reload client registry.

Connected clients are tracked by id. Each one owns a write-only channel; a
broadcast writes the same serialized message to every channel. A channel that
fails is dropped without affecting delivery to the others. Broadcasts are
serialized, so every client sees messages in send order even when its
``write`` is a coroutine.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable
from typing import Protocol

from sitectl.errors import ClientWriteError

logger = logging.getLogger(__name__)


class Channel(Protocol):
    """Write-only sink for serialized messages; ``write`` may be async."""

    def write(self, data: str) -> Awaitable[None] | None: ...


class ClientChannel:
    """Queue-backed channel drained by the transport in send order."""

    def __init__(self, client_id: str) -> None:
        self.client_id = client_id
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, data: str) -> None:
        if self._closed:
            raise ClientWriteError(self.client_id)
        self._queue.put_nowait(data)

    async def receive(self) -> str:
        """Wait for the next message."""
        return await self._queue.get()

    def close(self) -> None:
        self._closed = True


class ClientRegistry:
    """Connection id to channel mapping, safe under concurrent access."""

    def __init__(self) -> None:
        self._clients: dict[str, Channel] = {}
        self._lock = asyncio.Lock()
        self._send_lock = asyncio.Lock()

    async def register(self, client_id: str, channel: Channel | None = None) -> Channel:
        """Track *client_id*; create a :class:`ClientChannel` if none is given."""
        if channel is None:
            channel = ClientChannel(client_id)
        async with self._lock:
            previous = self._clients.get(client_id)
            self._clients[client_id] = channel
        if isinstance(previous, ClientChannel) and previous is not channel:
            previous.close()
        logger.debug("Live client connected: %s", client_id)
        return channel

    async def unregister(self, client_id: str) -> None:
        async with self._lock:
            channel = self._clients.pop(client_id, None)
        if isinstance(channel, ClientChannel):
            channel.close()
        if channel is not None:
            logger.debug("Live client disconnected: %s", client_id)

    async def broadcast(self, data: str) -> list[str]:
        """Write *data* to every client; return the ids that were dropped."""
        async with self._send_lock:
            async with self._lock:
                snapshot = list(self._clients.items())

            failed: list[tuple[str, Channel]] = []
            for client_id, channel in snapshot:
                try:
                    result = channel.write(data)
                    if inspect.isawaitable(result):
                        await result
                except Exception as exc:
                    error = exc if isinstance(exc, ClientWriteError) else ClientWriteError(client_id, exc)
                    logger.warning("Dropping live client: %s", error)
                    failed.append((client_id, channel))

        if failed:
            async with self._lock:
                for client_id, channel in failed:
                    # A reconnect may have replaced the channel meanwhile.
                    if self._clients.get(client_id) is channel:
                        del self._clients[client_id]
        return [client_id for client_id, _ in failed]

    @property
    def ids(self) -> list[str]:
        return list(self._clients)

    def __contains__(self, client_id: object) -> bool:
        return client_id in self._clients

    def __len__(self) -> int:
        return len(self._clients)
