"""Builds one agent per authenticated account."""

from __future__ import annotations

import importlib
import logging
from typing import Callable, List, Optional

from langchain_core.tools import BaseTool

from flow_gateway.agents.base import AgentFactory
from flow_gateway.agents.langgraph_agent import LangGraphAgentRound
from flow_gateway.agents.prompt import build_system_prompt
from flow_gateway.config import GatewaySettings
from flow_gateway.llm import LLMFactory

logger = logging.getLogger(__name__)

ToolsProvider = Callable[[str], List[BaseTool]]


def _no_tools(user_account_id: str) -> List[BaseTool]:
    return []


def load_tools_provider(path: Optional[str]) -> ToolsProvider:
    """
    Resolve ``package.module:callable`` to a tools provider.

    The callable receives the user account id and returns the LangChain
    tools bound to that account.
    """
    if not path:
        logger.warning("GATEWAY_TOOLS_PROVIDER not set; agents will run without tools")
        return _no_tools
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Tools provider must look like 'module:callable', got {path!r}")
    module = importlib.import_module(module_name)
    provider = getattr(module, attr, None)
    if not callable(provider):
        raise ValueError(f"Tools provider {path!r} is not callable")
    return provider


def build_agent_factory(
    settings: GatewaySettings,
    tools_provider: Optional[ToolsProvider] = None,
) -> AgentFactory:
    provider = tools_provider or load_tools_provider(settings.tools_provider)

    def create_agent(user_account_id: str) -> LangGraphAgentRound:
        llm = LLMFactory.create(settings.llm_model, temperature=settings.llm_temperature)
        tools = provider(user_account_id)
        logger.info(
            "Built agent for %s with model %s and %d tools",
            user_account_id,
            settings.llm_model,
            len(tools),
        )
        return LangGraphAgentRound(
            llm=llm,
            tools=tools,
            system_prompt=build_system_prompt(user_account_id),
        )

    return create_agent
