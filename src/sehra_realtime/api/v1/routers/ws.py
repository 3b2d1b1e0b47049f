from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from sehra_realtime.config import settings
from sehra_realtime.infrastructure.ws.gateway import RealtimeGateway

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])


@router.websocket(settings.WS_PATH)
async def realtime(websocket: WebSocket) -> None:
    """Accept anonymously; the connection authenticates with an ``authenticate`` event.

    Liveness is left to the server's ping/pong (``WS_PING_INTERVAL``).
    """
    gateway: RealtimeGateway = websocket.app.state.gateway
    await websocket.accept()
    conn = gateway.manager.accept(websocket)
    logger.info("Client connected: %s", conn.id)

    try:
        while True:
            raw = await websocket.receive_text()
            await gateway.dispatch(conn.id, raw)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error on %s", conn.id)
    finally:
        gateway.manager.close(conn.id)
