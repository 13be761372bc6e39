"""Development server: live-reload websocket plus a GraphQL endpoint.

``/___echo`` registers each websocket as a live client and forwards every
broadcast to it in send order. ``POST /___graphql`` runs a query against the
bootstrapped schema. The server shares the App's event loop, so broadcasts
triggered by plugins reach connected clients directly.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import uuid
from typing import TYPE_CHECKING, Any

import uvicorn
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field

from sitectl import __version__
from sitectl.app.clients import ClientChannel

if TYPE_CHECKING:
    from sitectl.app import App

logger = logging.getLogger(__name__)

ECHO_PATH = "/___echo"
GRAPHQL_PATH = "/___graphql"


class GraphQLRequest(BaseModel):
    query: str
    variables: dict[str, Any] = Field(default_factory=dict)


async def _pump(websocket: WebSocket, channel: ClientChannel) -> None:
    while True:
        data = await channel.receive()
        try:
            await websocket.send_text(data)
        except (WebSocketDisconnect, RuntimeError):
            logger.debug("Live client %s went away mid-send", channel.client_id)
            channel.close()
            return


def create_dev_app(app: App) -> FastAPI:
    """Build the ASGI application serving *app*'s live clients."""
    api = FastAPI(title=f"{app.config.site.name} (sitectl dev)", version=__version__)

    @api.websocket(ECHO_PATH)
    async def echo(websocket: WebSocket) -> None:
        client_id = uuid.uuid4().hex
        # Registered before accept so a connected client never misses a broadcast.
        channel = await app.clients.register(client_id)
        assert isinstance(channel, ClientChannel)
        sender: asyncio.Task[None] | None = None
        try:
            await websocket.accept()
            sender = asyncio.create_task(_pump(websocket, channel))
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            if sender is not None:
                sender.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await sender
            await app.clients.unregister(client_id)

    @api.post(GRAPHQL_PATH)
    async def graphql_endpoint(request: GraphQLRequest) -> dict[str, Any]:
        return await app.graphql(request.query, request.variables)

    @api.get("/___clients")
    async def clients() -> dict[str, Any]:
        return {"count": len(app.clients), "ids": app.clients.ids}

    return api


async def serve(app: App, *, host: str, port: int) -> None:
    """Serve the dev app until interrupted."""
    config = uvicorn.Config(create_dev_app(app), host=host, port=port, log_config=None)
    server = uvicorn.Server(config)
    logger.info("Serving %s on http://%s:%d", app.config.site.name, host, port)
    await server.serve()
