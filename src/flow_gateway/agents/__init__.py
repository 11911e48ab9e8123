from flow_gateway.agents.base import AgentFactory, AgentResult, AgentRound
from flow_gateway.agents.memory import ConversationMemory

__all__ = ["AgentFactory", "AgentResult", "AgentRound", "ConversationMemory"]
