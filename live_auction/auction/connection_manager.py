"""
WebSocket fan-out for state broadcasts.

The BroadcastCoordinator publishes from whichever thread triggered it (an
HTTP handler, the deadline ticker or a timer). Messages are handed to the
event loop through a queue and sent by a single worker task, so a slow or
dead socket never blocks the auction.
"""

import asyncio
import json
import logging
from typing import Dict, Optional

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks connected sockets and broadcasts to all of them."""

    def __init__(self):
        self.active_connections: Dict[WebSocket, asyncio.Lock] = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None

    async def connect(self, websocket: WebSocket) -> None:
        """Accept a new WebSocket client."""
        await websocket.accept()
        self.active_connections[websocket] = asyncio.Lock()
        logger.debug(f"Client connected ({len(self.active_connections)} active)")

    def disconnect(self, websocket: WebSocket) -> None:
        if self.active_connections.pop(websocket, None) is not None:
            logger.debug(f"Client disconnected ({len(self.active_connections)} active)")

    async def send(self, websocket: WebSocket, message: dict) -> bool:
        """
        Send one message to one client.

        Returns:
            False if the client is gone (it is dropped)
        """
        return await self._send_text(websocket, json.dumps(message))

    async def _send_text(self, websocket: WebSocket, text: str) -> bool:
        lock = self.active_connections.get(websocket)
        if lock is None:
            return False
        try:
            async with lock:
                await websocket.send_text(text)
            return True
        except Exception as e:
            logger.debug(f"Dropping client after failed send: {e}")
            self.disconnect(websocket)
            return False

    async def broadcast(self, message: dict) -> int:
        """
        Send a message to every connected client; failures are skipped.

        Sends run concurrently, so a slow client only delays itself.

        Returns:
            Number of clients reached
        """
        text = json.dumps(message)
        results = await asyncio.gather(
            *(self._send_text(websocket, text) for websocket in list(self.active_connections))
        )
        return sum(1 for delivered in results if delivered)

    # ----- Cross-thread hand-off -----

    def start(self, loop: asyncio.AbstractEventLoop) -> None:
        """Bind to the running loop and start the broadcast worker."""
        self._loop = loop
        self._queue = asyncio.Queue()
        self._worker = loop.create_task(self._broadcast_worker())

    async def stop(self) -> None:
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
        self.active_connections.clear()

    def publish_threadsafe(self, message: dict) -> None:
        """Queue a broadcast from any thread. Dropped if the loop is gone."""
        loop, queue = self._loop, self._queue
        if loop is None or queue is None or loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(queue.put_nowait, message)
        except RuntimeError:
            logger.debug("Event loop closed, broadcast dropped")

    async def _broadcast_worker(self) -> None:
        while True:
            message = await self._queue.get()
            await self.broadcast(message)
