"""Agent round backed by a LangGraph ReAct agent."""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, ToolMessage
from langchain_core.tools import BaseTool
from langgraph.prebuilt import create_react_agent

from flow_gateway.agents.base import AgentResult
from flow_gateway.agents.memory import ConversationMemory

logger = logging.getLogger(__name__)


def get_text_content(message: Any) -> Optional[str]:
    """Extract plain text from a LangChain message (str or list content)."""
    content = getattr(message, "content", None)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        collected: List[str] = []
        for part in content:
            if isinstance(part, str) and part.strip():
                collected.append(part.strip())
            elif isinstance(part, dict):
                text = part.get("text")
                if isinstance(text, str) and text.strip():
                    collected.append(text.strip())
        if collected:
            return "\n".join(collected)
    return None


class LangGraphAgentRound:
    """Runs one ReAct loop per instruction and reports the tool observations it produced."""

    def __init__(
        self,
        llm: BaseChatModel,
        tools: Sequence[BaseTool],
        system_prompt: str,
        name: str = "flow_agent",
        graph: Any = None,
    ):
        self.llm = llm
        self.tools = list(tools)
        self.graph = graph or create_react_agent(
            model=llm,
            tools=self.tools,
            prompt=system_prompt,
            name=name,
        )

    async def invoke(self, instruction: str, memory: ConversationMemory) -> AgentResult:
        input_messages: List[BaseMessage] = [*memory.context(), HumanMessage(content=instruction)]
        state = await self.graph.ainvoke({"messages": input_messages})
        produced = list(state.get("messages", []))[len(input_messages):]

        observations = [
            get_text_content(message) or ""
            for message in produced
            if isinstance(message, ToolMessage)
        ]
        text = ""
        for message in reversed(produced):
            if isinstance(message, AIMessage):
                candidate = get_text_content(message)
                if candidate and candidate.strip():
                    text = candidate.strip()
                    break

        memory.add_user_message(instruction)
        memory.add_ai_message(text)
        logger.debug("Agent round produced %d tool observations", len(observations))
        return AgentResult(text=text, observations=observations)
