"""Tests for the live-reload client registry."""

from __future__ import annotations

import asyncio

import pytest

from sitectl.app import ClientChannel, ClientRegistry
from sitectl.errors import ClientWriteError


class TestClientChannel:
    @pytest.mark.asyncio
    async def test_messages_arrive_in_write_order(self) -> None:
        channel = ClientChannel("c1")
        for n in range(3):
            channel.write(f"m{n}")
        assert [await channel.receive() for _ in range(3)] == ["m0", "m1", "m2"]

    def test_write_after_close(self) -> None:
        channel = ClientChannel("c1")
        channel.close()
        assert channel.closed
        with pytest.raises(ClientWriteError, match="c1"):
            channel.write("late")


class TestClientRegistry:
    @pytest.mark.asyncio
    async def test_register_creates_channel(self) -> None:
        registry = ClientRegistry()
        channel = await registry.register("c1")
        assert isinstance(channel, ClientChannel)
        assert "c1" in registry
        assert registry.ids == ["c1"]

    @pytest.mark.asyncio
    async def test_reregister_closes_previous_channel(self) -> None:
        registry = ClientRegistry()
        old = await registry.register("c1")
        new = await registry.register("c1")
        assert old.closed
        assert not new.closed
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_unregister(self) -> None:
        registry = ClientRegistry()
        channel = await registry.register("c1")
        await registry.unregister("c1")
        await registry.unregister("c1")
        assert channel.closed
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_broadcast_drops_closed_channels(self) -> None:
        registry = ClientRegistry()
        live = await registry.register("live")
        dead = await registry.register("dead")
        dead.close()

        dropped = await registry.broadcast('{"ok": true}')

        assert dropped == ["dead"]
        assert registry.ids == ["live"]
        assert await live.receive() == '{"ok": true}'

    @pytest.mark.asyncio
    async def test_broadcast_keeps_reconnected_client(self) -> None:
        registry = ClientRegistry()
        replacement = ClientChannel("c1")

        class Flaky:
            async def write(self, data: str) -> None:
                # Reconnect lands while this write is in flight.
                await registry.register("c1", replacement)
                msg = "gone"
                raise ConnectionError(msg)

        await registry.register("c1", Flaky())
        dropped = await registry.broadcast("x")

        assert dropped == ["c1"]
        assert "c1" in registry

    @pytest.mark.asyncio
    async def test_concurrent_registration(self) -> None:
        registry = ClientRegistry()
        await asyncio.gather(*(registry.register(f"c{n}") for n in range(20)))
        await asyncio.gather(*(registry.unregister(f"c{n}") for n in range(0, 20, 2)))
        assert sorted(registry.ids) == sorted(f"c{n}" for n in range(1, 20, 2))

    @pytest.mark.asyncio
    async def test_overlapping_broadcasts_keep_send_order(self) -> None:
        registry = ClientRegistry()
        received: list[str] = []

        class Slow:
            async def write(self, data: str) -> None:
                # The first message takes longer to write than the second.
                await asyncio.sleep(0.01 if data == "first" else 0)
                received.append(data)

        await registry.register("c1", Slow())
        await asyncio.gather(registry.broadcast("first"), registry.broadcast("second"))
        assert received == ["first", "second"]
