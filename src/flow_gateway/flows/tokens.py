"""Token display names loaded from a registry file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional


class TokenRegistry:
    """Resolve Hedera token ids to the symbols shown in swap quotes."""

    _REGISTRY_PATH: Path = Path(__file__).with_name("tokens.json")
    _BY_NETWORK: Dict[str, Dict[str, Dict[str, Any]]] = {}
    _GLOBAL: Dict[str, str] = {}
    _LOADED: bool = False

    # ---------- Registry management ----------
    @classmethod
    def reload(cls, path: Optional[Path] = None) -> None:
        if path is not None:
            cls._REGISTRY_PATH = Path(path)
        cls._rebuild(cls._load_registry())

    @classmethod
    def _ensure_loaded(cls) -> None:
        if not cls._LOADED:
            cls.reload()

    @classmethod
    def _load_registry(cls) -> Dict[str, Any]:
        try:
            raw = cls._REGISTRY_PATH.read_text()
        except FileNotFoundError as exc:
            raise RuntimeError(f"Token registry not found: {cls._REGISTRY_PATH}") from exc
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise RuntimeError(f"Invalid JSON in token registry: {exc}") from exc
        if not isinstance(data, dict):
            raise RuntimeError("Token registry must be a JSON object with 'networks'.")
        return data

    @classmethod
    def _rebuild(cls, data: Dict[str, Any]) -> None:
        by_network: Dict[str, Dict[str, Dict[str, Any]]] = {}
        global_names: Dict[str, str] = {}

        for network in data.get("networks", []):
            if not isinstance(network, dict):
                continue
            name = (network.get("name") or "").strip().lower()
            if not name:
                continue
            tokens: Dict[str, Dict[str, Any]] = {}
            for token in network.get("tokens", []):
                if not isinstance(token, dict):
                    continue
                token_id = (token.get("id") or "").strip()
                symbol = (token.get("symbol") or "").strip()
                if not token_id or not symbol:
                    continue
                tokens[token_id] = dict(token)
                global_names.setdefault(token_id, symbol)
            by_network[name] = tokens

        cls._BY_NETWORK = by_network
        cls._GLOBAL = global_names
        cls._LOADED = True

    # ---------- Public helpers ----------
    @classmethod
    def display_name(cls, token_id: Any, network: Optional[str] = None) -> str:
        """Symbol for ``token_id``; unknown ids come back unchanged."""
        cls._ensure_loaded()
        key = "" if token_id is None else str(token_id).strip()
        if not key:
            return ""
        if network:
            entry = cls._BY_NETWORK.get(network.strip().lower(), {}).get(key)
            if entry:
                return entry["symbol"]
        return cls._GLOBAL.get(key, key)

    @classmethod
    def networks(cls) -> list[str]:
        cls._ensure_loaded()
        return sorted(cls._BY_NETWORK)
