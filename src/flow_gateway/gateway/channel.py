"""Per-connection FIFO dispatch: frame N+1 is handled only after frame N finishes."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from flow_gateway.gateway.emitter import Emitter
from flow_gateway.gateway.handler import ConnectionProtocolHandler
from flow_gateway.service.session_store import ConnectionHandle

logger = logging.getLogger(__name__)

_STOP = object()


class ConnectionChannel:
    def __init__(self, handle: ConnectionHandle, handler: ConnectionProtocolHandler, emitter: Emitter):
        self.handle = handle
        self.handler = handler
        self.emitter = emitter
        self._queue: asyncio.Queue = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None
        self._closed = False

    def start(self) -> None:
        if self._worker is None:
            self._worker = asyncio.create_task(self._run(), name=f"channel-{self.handle}")

    def submit(self, raw: str | bytes) -> None:
        if self._closed:
            return
        self._queue.put_nowait(raw)

    async def _run(self) -> None:
        while True:
            raw = await self._queue.get()
            if raw is _STOP:
                return
            try:
                await self.handler.handle_raw(self.handle, raw, self.emitter)
            except Exception:
                logger.exception("Unhandled error on connection %s", self.handle)

    async def close(self) -> None:
        """Tear down the session now; an in-flight round finishes and its result is discarded."""
        if self._closed:
            return
        self._closed = True
        self.handler.on_disconnect(self.handle)
        dropped = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            dropped += 1
        if dropped:
            logger.debug("Dropped %d queued frames for closed connection %s", dropped, self.handle)
        self._queue.put_nowait(_STOP)
        if self._worker is not None:
            await self._worker
