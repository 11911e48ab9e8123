"""Outbound message construction and delivery for one connection."""

from __future__ import annotations

import threading
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from flow_gateway.models.messages import (
    AgentResponse,
    NoticeLevel,
    OutboundMessage,
    SwapQuote,
    SwapQuoteMessage,
    SystemNotice,
    TransactionToSign,
)

SendFunc = Callable[[Dict[str, Any]], Awaitable[None]]


class MonotonicClock:
    """Epoch milliseconds that never go backwards, even if the wall clock does."""

    def __init__(self, time_source: Callable[[], float] = time.time):
        self._time_source = time_source
        self._last = 0
        self._lock = threading.Lock()

    def now_ms(self) -> int:
        with self._lock:
            current = int(self._time_source() * 1000)
            if current < self._last:
                current = self._last
            self._last = current
            return current


_DEFAULT_CLOCK = MonotonicClock()


class Emitter:
    def __init__(self, send: SendFunc, clock: Optional[MonotonicClock] = None):
        self._send = send
        self._clock = clock or _DEFAULT_CLOCK

    async def emit(self, message: OutboundMessage) -> None:
        await self._send(message.to_wire())

    async def notice(self, message: str, level: NoticeLevel = NoticeLevel.INFO) -> None:
        await self.emit(SystemNotice(message=message, level=level, timestamp=self._clock.now_ms()))

    async def info(self, message: str) -> None:
        await self.notice(message, NoticeLevel.INFO)

    async def warning(self, message: str) -> None:
        await self.notice(message, NoticeLevel.WARNING)

    async def error(self, message: str) -> None:
        await self.notice(message, NoticeLevel.ERROR)

    async def agent_response(self, message: str, has_transaction: bool) -> None:
        await self.emit(
            AgentResponse(
                message=message,
                has_transaction=has_transaction,
                timestamp=self._clock.now_ms(),
            )
        )

    async def transaction_to_sign(self, payload: bytes, original_query: str) -> None:
        await self.emit(
            TransactionToSign(
                transaction_bytes=list(payload),
                original_query=original_query,
                timestamp=self._clock.now_ms(),
            )
        )

    async def swap_quote(self, quote: SwapQuote, original_message: str) -> None:
        await self.emit(
            SwapQuoteMessage(
                quote=quote,
                original_message=original_message,
                timestamp=self._clock.now_ms(),
            )
        )
