"""Realtime WebSocket endpoint."""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from taskhub.errors import AuthenticationError
from taskhub.realtime.hub import RealtimeHub

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def realtime_endpoint(websocket: WebSocket):
    """
    Authenticate with ?token=<jwt> (or a Bearer header), then exchange
    {"event": ..., "data": ...} text frames until either side closes.
    Binary frames are skipped.
    """
    hub: RealtimeHub = websocket.app.state.hub
    try:
        connection = await hub.connect(websocket)
    except AuthenticationError:
        return

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.debug("Connection %s closed by client (code %s)", connection.id, message.get("code"))
                break

            raw = message.get("text")
            if raw is None:
                logger.warning("Ignoring binary frame from connection %s", connection.id)
                continue
            await hub.handle_message(connection, raw)
    except WebSocketDisconnect as exc:
        logger.debug("Connection %s closed by client (code %s)", connection.id, exc.code)
    finally:
        await hub.disconnect(connection)
