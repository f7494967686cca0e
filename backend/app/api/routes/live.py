"""
Live building feed over WebSocket.

On connect the client gets the current building list (JSON text). After that it receives the
list again whenever a report is filed or a building's refresh timer fires, plus "ping" every
HEARTBEAT_INTERVAL_SECONDS.
"""
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.core.constants import CLIENT_AVAILABILITY_UPDATED
from app.services.live import LiveUpdates

router = APIRouter()
logger = logging.getLogger(__name__)


@router.websocket("/ws")
async def live_buildings(websocket: WebSocket):
    live: LiveUpdates = websocket.app.state.live
    await live.hub.connect(websocket)
    try:
        while True:
            message = await websocket.receive_text()
            # Legacy clients announce their own report; everyone gets a fresh list
            if message == CLIENT_AVAILABILITY_UPDATED:
                await live.refresher.broadcast()
    except WebSocketDisconnect:
        logger.debug("Live client closed the connection")
    finally:
        live.hub.disconnect(websocket)
