"""
In-process registry of live notification sockets.

A user may hold several sockets at once (one per open tab or device).
Delivery is best effort: a socket that fails to accept a message is
dropped from the registry.
"""
import asyncio
from collections import defaultdict
from typing import Any

import structlog
from fastapi import WebSocket

logger = structlog.get_logger(__name__)


class ConnectionRegistry:
    def __init__(self) -> None:
        self._connections: dict[int, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def register(self, user_id: int, websocket: WebSocket) -> None:
        async with self._lock:
            self._connections[user_id].add(websocket)
        logger.info("realtime_connection_registered", user_id=user_id)

    async def unregister(self, user_id: int, websocket: WebSocket) -> None:
        async with self._lock:
            sockets = self._connections.get(user_id)
            if sockets is None:
                return
            sockets.discard(websocket)
            if not sockets:
                del self._connections[user_id]
        logger.info("realtime_connection_closed", user_id=user_id)

    async def send_to_user(self, user_id: int, payload: dict[str, Any]) -> int:
        """Push ``payload`` to every socket of ``user_id``. Returns deliveries."""
        async with self._lock:
            sockets = list(self._connections.get(user_id, ()))

        delivered = 0
        for websocket in sockets:
            try:
                await websocket.send_json(payload)
                delivered += 1
            except Exception as exc:
                logger.warning("realtime_delivery_failed", user_id=user_id, error=str(exc))
                await self.unregister(user_id, websocket)
        return delivered


connection_registry = ConnectionRegistry()
