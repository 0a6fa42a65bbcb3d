"""
Realtime Broadcaster — fans JSON events out to every connected browser.

The channel is server-push only: text frames from clients are logged and
otherwise ignored. Each browser socket is wrapped in a Connection that
reports a lifecycle state (connecting → open → closing → closed); only open
connections receive broadcasts. Closed connections are dropped from the set
by the disconnect path, not by broadcast().
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from datetime import datetime
from enum import Enum
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect
from fastapi.websockets import WebSocketState

from switchboard.core.broadcast import BroadcastRegistry

logger = logging.getLogger("switchboard.realtime")


class ConnectionState(str, Enum):
    """Client connection lifecycle."""
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class Connection:
    """One live browser socket."""

    def __init__(self, websocket: WebSocket, connection_id: str | None = None):
        self.websocket = websocket
        self.connection_id = connection_id or str(uuid.uuid4())
        self.connected_at = datetime.now()
        self._closing = False

    @property
    def state(self) -> ConnectionState:
        client = self.websocket.client_state
        application = self.websocket.application_state
        if WebSocketState.DISCONNECTED in (client, application):
            return ConnectionState.CLOSED
        if self._closing:
            return ConnectionState.CLOSING
        if client == WebSocketState.CONNECTED and application == WebSocketState.CONNECTED:
            return ConnectionState.OPEN
        return ConnectionState.CONNECTING

    @property
    def is_open(self) -> bool:
        return self.state == ConnectionState.OPEN

    def mark_closing(self) -> None:
        self._closing = True

    async def send_text(self, text: str) -> None:
        await self.websocket.send_text(text)

    def get_info(self) -> dict[str, Any]:
        return {
            "connection_id": self.connection_id,
            "state": self.state.value,
            "connected_at": self.connected_at.isoformat(),
        }


class RealtimeBroadcaster:
    """Tracks live connections and pushes events to all open ones."""

    def __init__(self) -> None:
        self._connections: set[Connection] = set()

    @property
    def connections(self) -> set[Connection]:
        return self._connections

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def add(self, connection: Connection) -> None:
        self._connections.add(connection)

    async def connect(self, websocket: WebSocket) -> Connection:
        """Accept the socket and start including it in fan-out."""
        await websocket.accept()
        connection = Connection(websocket)
        self._connections.add(connection)
        logger.info(
            "New WebSocket connection %s (active=%d)",
            connection.connection_id, len(self._connections),
        )
        return connection

    def disconnect(self, connection: Connection) -> None:
        if connection in self._connections:
            connection.mark_closing()
            self._connections.discard(connection)
            logger.info(
                "WebSocket connection %s closed (active=%d)",
                connection.connection_id, len(self._connections),
            )

    async def handle(self, websocket: WebSocket) -> None:
        """Run one connection until the client goes away."""
        connection = await self.connect(websocket)
        try:
            while True:
                message = await websocket.receive_text()
                logger.info(
                    "Received WebSocket message from %s: %s",
                    connection.connection_id, message[:200],
                )
        except WebSocketDisconnect:
            pass
        finally:
            self.disconnect(connection)

    async def broadcast(self, payload: dict[str, Any]) -> None:
        """Send ``payload`` as JSON text to every open connection."""
        text = json.dumps(payload)
        targets = [c for c in list(self._connections) if c.is_open]
        if not targets:
            logger.debug("Broadcast %s: no open connections", payload.get("type"))
            return

        results = await asyncio.gather(
            *[c.send_text(text) for c in targets], return_exceptions=True
        )
        for connection, result in zip(targets, results):
            if isinstance(result, Exception):
                logger.error(
                    "Broadcast error to connection %s: %s",
                    connection.connection_id, result,
                )
        logger.info(
            "Broadcasted %s event to %d connection(s)",
            payload.get("type"), len(targets),
        )


class NoopBroadcaster:
    """Stand-in used in test mode; accepts events and drops them."""

    connection_count = 0

    async def broadcast(self, payload: dict[str, Any]) -> None:
        logger.debug("NoopBroadcaster dropped %s event", payload.get("type"))

    async def handle(self, websocket: WebSocket) -> None:
        await websocket.close(code=1013, reason="Realtime disabled")


def setup_realtime(
    registry: BroadcastRegistry, testing: bool = False
) -> RealtimeBroadcaster | NoopBroadcaster:
    """Build the broadcaster and install its broadcast() in the registry."""
    if testing:
        broadcaster: RealtimeBroadcaster | NoopBroadcaster = NoopBroadcaster()
        logger.info("Realtime disabled (test mode)")
    else:
        broadcaster = RealtimeBroadcaster()
        logger.info("WebSocket broadcaster setup complete")
    registry.set_broadcast(broadcaster.broadcast)
    return broadcaster
