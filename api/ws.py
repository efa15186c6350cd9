"""WebSocket push channel delivering grants to a character's client."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, Query, WebSocket

from engine.grants import GrantDeliveryRegistry
from models.grants import GrantKind

router = APIRouter()

logger = logging.getLogger("stormsheet.ws")


class WebSocketClient:
    """Client handle for one websocket.

    ``deliver`` only enqueues the message; a writer task drains the outbox,
    so queue operations never wait on the network.
    """

    def __init__(self, character_id: str, websocket: WebSocket) -> None:
        self.character_id = character_id
        self.websocket = websocket
        self._loop = asyncio.get_running_loop()
        self._outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

    def deliver(self, message: dict[str, Any]) -> None:
        self._loop.call_soon_threadsafe(self._outbox.put_nowait, message)

    async def pump(self) -> None:
        """Send queued messages in order until the socket fails."""
        while True:
            message = await self._outbox.get()
            try:
                await self.websocket.send_json(message)
            except Exception as e:
                logger.warning(f"Failed to send to {self.character_id}: {e}")
                return


def _handle_message(
    registry: GrantDeliveryRegistry,
    character_id: str,
    message: Any,
) -> dict[str, Any] | None:
    """Apply one client message. Returns a reply to send, if any."""
    if not isinstance(message, dict):
        return {"type": "error", "error": "Messages must be JSON objects"}

    msg_type = message.get("type")
    if msg_type == "ack":
        try:
            kind = GrantKind(message.get("kind"))
        except ValueError:
            return {"type": "error", "error": f"Unknown grant kind: {message.get('kind')}"}
        registry.on_acknowledge(character_id, kind, grant_id=message.get("grantId"))
        return None

    if msg_type == "identify":
        level = message.get("level")
        if isinstance(level, bool) or not isinstance(level, int) or level < 1:
            return {"type": "error", "error": "identify requires a level of at least 1"}
        registry.resync_level(character_id, level)
        return None

    logger.debug(f"Unknown WebSocket message type from {character_id}: {msg_type}")
    return {"type": "error", "error": f"Unknown message type: {msg_type}"}


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    character_id: str = Query(..., alias="characterId"),
) -> None:
    """Push channel for one character.

    On connect the server sends ``connected`` and then the head of every
    pending grant queue. Clients reply with ``ack`` messages (``kind`` and
    optionally ``grantId``) and may send ``identify`` with their current
    level to catch up on missed level-ups.
    """
    registry: GrantDeliveryRegistry = websocket.app.state.grants

    await websocket.accept()
    await websocket.send_json({"type": "connected", "characterId": character_id})

    client = WebSocketClient(character_id, websocket)
    writer = asyncio.create_task(client.pump())
    registry.on_client_connected(character_id, client)

    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                break
            data = frame.get("text")
            if data is None:
                client.deliver({"type": "error", "error": "Messages must be text frames"})
                continue
            try:
                message = json.loads(data)
            except ValueError:
                client.deliver({"type": "error", "error": "Malformed message"})
                continue
            reply = _handle_message(registry, character_id, message)
            if reply is not None:
                client.deliver(reply)
    finally:
        registry.on_client_disconnected(character_id, client)
        writer.cancel()
