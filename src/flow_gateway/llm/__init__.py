from flow_gateway.llm.exceptions import LLMError, LLMInvalidModelError, LLMProviderError
from flow_gateway.llm.factory import LLMFactory, detect_provider

__all__ = [
    "LLMFactory",
    "detect_provider",
    "LLMError",
    "LLMProviderError",
    "LLMInvalidModelError",
]
