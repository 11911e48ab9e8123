"""Capability interface for one request/response cycle with the reasoning model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, List, Protocol, runtime_checkable

from flow_gateway.agents.memory import ConversationMemory


@dataclass
class AgentResult:
    """Reply text plus the raw tool observations produced during the round, in call order."""

    text: str
    observations: List[Any] = field(default_factory=list)


@runtime_checkable
class AgentRound(Protocol):
    async def invoke(self, instruction: str, memory: ConversationMemory) -> AgentResult:
        ...


AgentFactory = Callable[[str], AgentRound]
