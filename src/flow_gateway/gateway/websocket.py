"""FastAPI WebSocket endpoint bridging sockets to the protocol handler."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from flow_gateway.gateway.channel import ConnectionChannel
from flow_gateway.gateway.emitter import Emitter, SendFunc

logger = logging.getLogger(__name__)

router = APIRouter()


def socket_sender(websocket: WebSocket, handle: str) -> SendFunc:
    """Send JSON while the socket is open; sends after close are dropped."""

    async def send(payload: Dict[str, Any]) -> None:
        if (
            websocket.client_state != WebSocketState.CONNECTED
            or websocket.application_state != WebSocketState.CONNECTED
        ):
            logger.debug("Dropping %s for closed connection %s", payload.get("type"), handle)
            return
        try:
            await websocket.send_json(payload)
        except (WebSocketDisconnect, RuntimeError) as exc:
            logger.debug("Send to connection %s failed: %s", handle, exc)

    return send


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    handler = websocket.app.state.handler
    handle = uuid.uuid4().hex
    emitter = Emitter(socket_sender(websocket, handle))
    channel = ConnectionChannel(handle, handler, emitter)

    await handler.on_connect(handle, emitter)
    channel.start()
    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                break
            raw = frame.get("text")
            if raw is None:
                raw = frame.get("bytes")
            if raw is not None:
                channel.submit(raw)
    except WebSocketDisconnect:
        pass
    finally:
        await channel.close()
