"""
Chat model factory used to back agent rounds.

Providers are imported lazily so only the configured one needs credentials:
- OpenAI (GPT)
- Google (Gemini)
- Anthropic (Claude)
"""

import os
from typing import Literal

from langchain_core.language_models import BaseChatModel

from .exceptions import LLMInvalidModelError, LLMProviderError

Provider = Literal["openai", "google", "anthropic"]

MODEL_PROVIDERS: dict[Provider, list[str]] = {
    "openai": ["gpt-4o-mini", "gpt-4o", "gpt-4-turbo"],
    "google": ["gemini-2.5-flash", "gemini-2.5-pro", "gemini-2.0-flash"],
    "anthropic": ["claude-sonnet-4-20250514", "claude-3-5-haiku-20241022"],
}

ALL_MODELS: set[str] = {model for models in MODEL_PROVIDERS.values() for model in models}

_PREFIXES: tuple[tuple[str, Provider], ...] = (
    ("gpt", "openai"),
    ("o1", "openai"),
    ("o3", "openai"),
    ("gemini", "google"),
    ("claude", "anthropic"),
)


def detect_provider(model: str) -> Provider:
    """
    Map a model name to its provider.

    Raises:
        LLMInvalidModelError: If neither a prefix nor the known list matches
    """
    model_lower = model.lower()
    for prefix, provider in _PREFIXES:
        if model_lower.startswith(prefix):
            return provider
    for provider, models in MODEL_PROVIDERS.items():
        if model in models:
            return provider
    raise LLMInvalidModelError(model, list(ALL_MODELS))


class LLMFactory:
    """Creates (and caches) chat models across providers."""

    _instances: dict[str, BaseChatModel] = {}

    @classmethod
    def create(
        cls,
        model: str,
        temperature: float = 0.0,
        max_retries: int = 3,
        timeout: int = 60,
        api_key: str | None = None,
        use_cache: bool = True,
    ) -> BaseChatModel:
        """
        Create a chat model for the given model name.

        Args:
            model: Model name (e.g., 'gpt-4o-mini', 'gemini-2.5-flash')
            temperature: Sampling temperature
            max_retries: Provider-side retries per request
            timeout: Request timeout in seconds
            api_key: Optional API key (defaults to the provider's env var)
            use_cache: Reuse an instance built with the same settings

        Raises:
            LLMInvalidModelError: If model is not recognized
            LLMProviderError: If the provider client cannot be built
        """
        cache_key = f"{model}:{temperature}:{timeout}"
        if use_cache and cache_key in cls._instances:
            return cls._instances[cache_key]

        provider = detect_provider(model)
        try:
            llm = cls._create_for_provider(
                provider, model, temperature, max_retries, timeout, api_key
            )
        except Exception as e:
            raise LLMProviderError(
                f"Failed to create LLM for '{model}': {e}",
                provider=provider,
                model=model,
            ) from e

        if use_cache:
            cls._instances[cache_key] = llm
        return llm

    @staticmethod
    def _create_for_provider(
        provider: Provider,
        model: str,
        temperature: float,
        max_retries: int,
        timeout: int,
        api_key: str | None,
    ) -> BaseChatModel:
        match provider:
            case "openai":
                from langchain_openai import ChatOpenAI

                return ChatOpenAI(
                    model=model,
                    temperature=temperature,
                    max_retries=max_retries,
                    timeout=timeout,
                    api_key=api_key or os.getenv("OPENAI_API_KEY"),
                )
            case "google":
                from langchain_google_genai import ChatGoogleGenerativeAI

                return ChatGoogleGenerativeAI(
                    model=model,
                    temperature=temperature,
                    max_retries=max_retries,
                    timeout=timeout,
                    google_api_key=api_key or os.getenv("GEMINI_API_KEY"),
                )
            case "anthropic":
                from langchain_anthropic import ChatAnthropic

                return ChatAnthropic(
                    model=model,
                    temperature=temperature,
                    max_retries=max_retries,
                    timeout=timeout,
                    api_key=api_key or os.getenv("ANTHROPIC_API_KEY"),
                )
        raise LLMInvalidModelError(model, list(ALL_MODELS))

    @classmethod
    def clear_cache(cls) -> None:
        cls._instances.clear()
