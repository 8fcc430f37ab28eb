"""WebSocket fanout of the live feed subscription."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import WebSocket

from ..store import Subscription
from .feed import FeedService

logger = logging.getLogger(__name__)


class FeedStreamManager:
    """Bridges one feed subscription to every connected WebSocket.

    Each change to the posts collection is pushed as a ``feed_snapshot``
    message carrying the full ordered feed.
    """

    def __init__(self) -> None:
        self._connections: set[WebSocket] = set()
        self._lock = asyncio.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._subscription: Subscription | None = None
        self._latest: list[dict[str, Any]] = []
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def running(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def start(self, feed: FeedService, loop: asyncio.AbstractEventLoop) -> None:
        if self.running:
            return
        self._loop = loop
        self._subscription = feed.listen_to_posts(self._on_snapshot)

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def _on_snapshot(self, posts: list[dict[str, Any]]) -> None:
        self._latest = posts
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        message = {"type": "feed_snapshot", "posts": posts}
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            task = loop.create_task(self.broadcast(message))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        else:
            asyncio.run_coroutine_threadsafe(self.broadcast(message), loop)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._connections.add(websocket)
        await websocket.send_text(json.dumps({"type": "feed_snapshot", "posts": self._latest}, default=str))

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._connections.discard(websocket)

    async def broadcast(self, message: dict[str, Any]) -> None:
        payload = json.dumps(message, default=str)
        async with self._lock:
            targets = list(self._connections)
        for connection in targets:
            try:
                await connection.send_text(payload)
            except Exception:
                await self.disconnect(connection)


__all__ = ["FeedStreamManager"]
