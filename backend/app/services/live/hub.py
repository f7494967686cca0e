"""
Broadcast hub: fan-out of the building list to every connected WebSocket client.

The hub only references clients (weakly); the WebSocket route owns their lifetime and calls
disconnect() when the socket closes. A failed or slow send drops that client and never holds
up delivery to the others.
"""
import asyncio
import logging
import weakref
from typing import Awaitable, Callable, Protocol

from app.core.constants import BROADCAST_SEND_TIMEOUT_SECONDS, HEARTBEAT_MESSAGE

logger = logging.getLogger(__name__)


class LiveClient(Protocol):
    """Subset of starlette.websockets.WebSocket the hub needs."""

    async def accept(self) -> None: ...

    async def send_text(self, data: str) -> None: ...


class BroadcastHub:
    def __init__(
        self,
        snapshot: Callable[[], Awaitable[str]],
        *,
        send_timeout: float = BROADCAST_SEND_TIMEOUT_SECONDS,
    ) -> None:
        """snapshot: coroutine returning the serialized building list (computed once per broadcast)."""
        self._snapshot = snapshot
        self._send_timeout = send_timeout
        self._clients: "weakref.WeakSet[LiveClient]" = weakref.WeakSet()

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def connect(self, client: LiveClient) -> None:
        """Accept, register, and send the current building list to this client only."""
        await client.accept()
        self._clients.add(client)
        logger.debug("Live client connected (%s total)", len(self._clients))
        payload = await self._snapshot()
        if not await self._send(client, payload):
            self.disconnect(client)

    def disconnect(self, client: LiveClient) -> None:
        self._clients.discard(client)
        logger.debug("Live client disconnected (%s left)", len(self._clients))

    async def broadcast(self) -> int:
        """Recompute the building list once and push it to all clients. Returns successful sends."""
        if not self._clients:
            return 0
        payload = await self._snapshot()
        return await self._send_all(payload)

    async def heartbeat(self) -> int:
        """Keepalive so intermediaries do not close idle sockets."""
        return await self._send_all(HEARTBEAT_MESSAGE)

    async def _send_all(self, payload: str) -> int:
        clients = list(self._clients)
        if not clients:
            return 0
        results = await asyncio.gather(*(self._send(c, payload) for c in clients))
        for client, ok in zip(clients, results):
            if not ok:
                self.disconnect(client)
        return sum(1 for ok in results if ok)

    async def _send(self, client: LiveClient, payload: str) -> bool:
        try:
            await asyncio.wait_for(client.send_text(payload), timeout=self._send_timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning("Live client send timed out after %ss; dropping it", self._send_timeout)
        except Exception as e:
            logger.warning("Live client send failed (%s); dropping it", e)
        return False
