"""
Errors raised while building chat models for agent rounds.
"""


class LLMError(Exception):
    """Base exception for chat-model construction errors."""

    def __init__(self, message: str, provider: str | None = None, model: str | None = None):
        self.provider = provider
        self.model = model
        super().__init__(message)


class LLMProviderError(LLMError):
    """Raised when a provider client cannot be created."""

    pass


class LLMInvalidModelError(LLMError):
    """Raised when a model name maps to no known provider."""

    def __init__(self, model: str, available_models: list[str] | None = None):
        self.available_models = sorted(available_models or [])
        message = f"Invalid model: {model}"
        if self.available_models:
            message += f". Available models: {', '.join(self.available_models)}"
        super().__init__(message, model=model)
