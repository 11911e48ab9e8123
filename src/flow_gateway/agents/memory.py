"""
Per-connection conversation memory.

The buffer holds at most ``max_recent`` messages; older turns are dropped as
new ones arrive, so a long-lived connection never grows without bound.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, List

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

logger = logging.getLogger(__name__)

DEFAULT_MAX_RECENT = 20


class ConversationMemory:
    def __init__(self, max_recent: int = DEFAULT_MAX_RECENT):
        if max_recent < 1:
            raise ValueError("max_recent must be at least 1")
        self.max_recent = max_recent
        self._messages: Deque[BaseMessage] = deque(maxlen=max_recent)

    @property
    def messages(self) -> List[BaseMessage]:
        return list(self._messages)

    def add_user_message(self, content: str) -> None:
        self._messages.append(HumanMessage(content=content))

    def add_ai_message(self, content: str) -> None:
        self._messages.append(AIMessage(content=content))

    def context(self, max_recent: int | None = None) -> List[BaseMessage]:
        """The most recent messages, at most ``max_recent`` of them."""
        limit = self.max_recent if max_recent is None else max_recent
        if limit <= 0:
            return []
        return list(self._messages)[-limit:]

    def clear(self) -> None:
        if self._messages:
            logger.debug("Clearing %d memory messages", len(self._messages))
        self._messages.clear()

    def __len__(self) -> int:
        return len(self._messages)
