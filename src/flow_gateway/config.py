from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

_NETWORKS = ("mainnet", "testnet")
_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(slots=True)
class GatewaySettings:
    """Runtime configuration for the flow gateway."""

    host: str = "0.0.0.0"
    port: int = 8080
    network: str = "mainnet"
    llm_model: str = "gpt-4o-mini"
    llm_temperature: float = 0.0
    memory_window: int = 20
    force_clear_memory: bool = False
    tools_provider: Optional[str] = None
    log_level: str = "INFO"
    log_format: str = "color"
    rate_limit_health: str = "100/minute"

    @classmethod
    def load(cls) -> "GatewaySettings":
        network = os.getenv("HEDERA_NETWORK", "mainnet").strip().lower()
        if network not in _NETWORKS:
            raise ValueError(
                f"HEDERA_NETWORK must be one of {', '.join(_NETWORKS)}, got {network!r}"
            )

        raw_temperature = os.getenv("GATEWAY_LLM_TEMPERATURE", "0")
        try:
            temperature = float(raw_temperature)
        except ValueError as exc:
            raise ValueError(
                f"GATEWAY_LLM_TEMPERATURE must be a number, got {raw_temperature!r}"
            ) from exc

        memory_window = _env_int("GATEWAY_MEMORY_WINDOW", 20)
        if memory_window < 1:
            raise ValueError("GATEWAY_MEMORY_WINDOW must be at least 1.")

        return cls(
            host=os.getenv("GATEWAY_HOST", "0.0.0.0"),
            port=_env_int("GATEWAY_PORT", 8080),
            network=network,
            llm_model=os.getenv("GATEWAY_LLM_MODEL", "gpt-4o-mini"),
            llm_temperature=temperature,
            memory_window=memory_window,
            force_clear_memory=_env_flag("FORCE_CLEAR_MEMORY"),
            tools_provider=os.getenv("GATEWAY_TOOLS_PROVIDER") or None,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("LOG_FORMAT", "color").lower(),
            rate_limit_health=os.getenv("RATE_LIMIT_HEALTH", "100/minute"),
        )


@lru_cache(maxsize=1)
def get_settings() -> GatewaySettings:
    """Memoized accessor so callers share a single settings instance."""

    return GatewaySettings.load()
