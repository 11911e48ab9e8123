"""
In-memory session store keyed by live connection.

A record is created on authentication and destroyed when the socket goes away.
Switching accounts on the same socket destroys the old record and creates a
new one; records are never mutated into a different account.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Hashable, Optional

from flow_gateway.agents.base import AgentFactory, AgentRound
from flow_gateway.agents.memory import ConversationMemory
from flow_gateway.models.flow import FlowState, PendingStep

logger = logging.getLogger(__name__)

ConnectionHandle = Hashable


@dataclass
class Connection:
    handle: ConnectionHandle
    user_account_id: str
    memory: ConversationMemory
    agent: AgentRound
    pending_step: Optional[PendingStep] = None
    executing: bool = False

    @property
    def state(self) -> FlowState:
        if self.executing:
            return FlowState.EXECUTING_NEXT
        if self.pending_step is not None:
            return FlowState.AWAITING_SIGNATURE
        return FlowState.IDLE

    def take_pending_step(self) -> Optional[PendingStep]:
        """Snapshot and clear the pending step in one move."""
        step, self.pending_step = self.pending_step, None
        return step


class SessionStore:
    def __init__(
        self,
        agent_factory: AgentFactory,
        memory_factory: Callable[[], ConversationMemory] = ConversationMemory,
    ):
        self._agent_factory = agent_factory
        self._memory_factory = memory_factory
        self._connections: Dict[ConnectionHandle, Connection] = {}

    # ---- Core API ----

    def create(self, handle: ConnectionHandle, user_account_id: str) -> Connection:
        if handle in self._connections:
            self.destroy(handle)
        connection = Connection(
            handle=handle,
            user_account_id=user_account_id,
            memory=self._memory_factory(),
            agent=self._agent_factory(user_account_id),
        )
        self._connections[handle] = connection
        logger.info("Created session for account %s on connection %s", user_account_id, handle)
        return connection

    def get(self, handle: ConnectionHandle) -> Optional[Connection]:
        return self._connections.get(handle)

    def destroy(self, handle: ConnectionHandle) -> None:
        connection = self._connections.pop(handle, None)
        if connection is None:
            return
        connection.pending_step = None
        try:
            connection.memory.clear()
        except Exception:
            logger.exception("Failed to clear memory for connection %s", handle)
        logger.info(
            "Destroyed session for account %s on connection %s",
            connection.user_account_id,
            handle,
        )

    def replace(self, handle: ConnectionHandle, user_account_id: str) -> Connection:
        self.destroy(handle)
        return self.create(handle, user_account_id)

    def count(self) -> int:
        return len(self._connections)

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, handle: object) -> bool:
        return handle in self._connections
