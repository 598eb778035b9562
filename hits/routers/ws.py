"""
Live hit feed over WebSocket.

GET /ws — after the handshake, the key of every recorded hit is pushed
as a text frame. Messages from the client are logged and ignored.
"""

import asyncio
import logging

from fastapi import APIRouter, WebSocket

from hits.services.broadcaster import broadcaster

logger = logging.getLogger(__name__)

router = APIRouter(tags=["WebSocket"])


async def _forward(queue: asyncio.Queue[str], websocket: WebSocket) -> None:
    while True:
        key = await queue.get()
        await websocket.send_text(key)


@router.websocket("/ws")
async def hit_feed(websocket: WebSocket) -> None:
    async with broadcaster.subscribe() as queue:
        await websocket.accept()
        logger.info("WebSocket connection established")

        sender = asyncio.create_task(_forward(queue, websocket))
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                logger.debug("Ignoring client WebSocket message")
        finally:
            sender.cancel()
            try:
                await sender
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.warning("WebSocket send failed, client disconnected?")

    logger.info("WebSocket connection closed")
