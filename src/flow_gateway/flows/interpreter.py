"""
Response interpretation.

One agent round can call several tools. Their observations are scanned for
three things: the signable payload to hand to the wallet, a completed swap
quote to display, and the step to queue behind the payload. Observations that
cannot be decoded are logged and skipped; interpretation never raises on
observation content.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from flow_gateway.errors import ObservationParseError
from flow_gateway.flows.registry import (
    GENERIC_TOOL,
    FlowFamily,
    classify_candidate,
    family_for_tool,
    find_transition,
    resolve_family,
)
from flow_gateway.flows.tokens import TokenRegistry
from flow_gateway.models.flow import Candidate, Interpretation, PendingStep
from flow_gateway.models.messages import QuoteLeg, SwapQuote

logger = logging.getLogger(__name__)

QUOTE_OPERATIONS = frozenset({"get_amounts_out", "get_amounts_in"})

_EXPLICIT = 2
_INFERRED = 1


# ---- Decoding ----


def parse_observation(raw: Any) -> dict:
    """Return the observation as a dict or raise ObservationParseError."""
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = bytes(raw).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ObservationParseError(f"Observation is not UTF-8: {exc}") from exc
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ObservationParseError(f"Observation is not JSON: {exc}") from exc
        if isinstance(parsed, dict):
            return parsed
        raise ObservationParseError(f"Observation decoded to {type(parsed).__name__}, expected object")
    raise ObservationParseError(f"Unsupported observation type: {type(raw).__name__}")


def _bytes_from_ints(values: Sequence[Any]) -> bytes:
    if not all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        raise ObservationParseError("Byte array contains non-integer values")
    try:
        return bytes(values)
    except ValueError as exc:
        raise ObservationParseError(f"Byte array out of range: {exc}") from exc


def decode_payload(value: Any) -> Optional[bytes]:
    """
    Decode a transaction payload.

    Accepts raw bytes, a list of ints, a serialized Node buffer
    (``{"type": "Buffer", "data": [...]}``), a hex string with or without
    ``0x``, or base64. Returns None for a missing or empty payload.

    A bare string made only of hex digits (even length) is read as hex before
    base64 is tried, so ``"deadbeef"`` decodes to four bytes. Tools emitting
    base64 that happens to be hex-clean must send bytes or a Buffer instead.
    """
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        return bytes(value) or None
    if isinstance(value, list):
        return _bytes_from_ints(value) or None
    if isinstance(value, Mapping):
        data = value.get("data")
        if isinstance(data, list):
            return _bytes_from_ints(data) or None
        raise ObservationParseError("Payload object has no 'data' array")
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text[:2].lower() == "0x":
            try:
                return bytes.fromhex(text[2:]) or None
            except ValueError as exc:
                raise ObservationParseError(f"Invalid hex payload: {exc}") from exc
        try:
            return bytes.fromhex(text)
        except ValueError:
            pass
        try:
            return base64.b64decode(text, validate=True) or None
        except (binascii.Error, ValueError) as exc:
            raise ObservationParseError(f"Payload is neither hex nor base64: {exc}") from exc
    raise ObservationParseError(f"Unsupported payload type: {type(value).__name__}")


# ---- Interpreter ----


@dataclass
class _Parsed:
    index: int
    data: dict
    payload: Optional[bytes]


class ResponseInterpreter:
    """Extract payload, swap quote and next step from one round's observations."""

    def __init__(self, network: str = "mainnet"):
        self.network = network

    def interpret(
        self,
        observations: Iterable[Any],
        fallback_tool: Optional[str] = None,
    ) -> Interpretation:
        parsed = self._parse_all(observations)
        fallback = family_for_tool(fallback_tool)

        winner = self._select_candidate(parsed)
        transaction_bytes = winner.payload if winner else None
        swap_quote = self._find_swap_quote(parsed)
        next_step = self._select_next_step(parsed, fallback, fallback_tool, winner)

        if transaction_bytes and next_step:
            logger.info(
                "Queued step %s (%s) behind %d-byte payload",
                next_step.step,
                next_step.tool,
                len(transaction_bytes),
            )
        return Interpretation(
            transaction_bytes=transaction_bytes,
            swap_quote=swap_quote,
            next_step=next_step,
        )

    def _parse_all(self, observations: Iterable[Any]) -> List[_Parsed]:
        parsed: List[_Parsed] = []
        for index, raw in enumerate(observations or []):
            try:
                data = parse_observation(raw)
                payload = decode_payload(data.get("bytes"))
            except ObservationParseError as exc:
                logger.warning("Skipping malformed observation #%d: %s", index, exc)
                continue
            parsed.append(_Parsed(index=index, data=data, payload=payload))
        return parsed

    # ---- Signable payload ----

    def candidates(self, parsed: Sequence[_Parsed]) -> List[Candidate]:
        found: List[Candidate] = []
        for item in parsed:
            if not item.payload:
                continue
            operation = _as_str(item.data.get("operation"))
            step = _as_str(item.data.get("step"))
            found.append(
                Candidate(
                    payload=item.payload,
                    operation=operation,
                    step=step,
                    rank=classify_candidate(step, operation),
                    index=item.index,
                )
            )
        return found

    def _select_candidate(self, parsed: Sequence[_Parsed]) -> Optional[Candidate]:
        found = self.candidates(parsed)
        if not found:
            return None
        # min() keeps the first of equal ranks
        best = min(found, key=lambda candidate: candidate.rank)
        if len(found) > 1:
            logger.debug(
                "Selected payload from observation #%d (%s) out of %d candidates",
                best.index,
                best.rank.name.lower(),
                len(found),
            )
        return best

    # ---- Swap quote ----

    def _find_swap_quote(self, parsed: Sequence[_Parsed]) -> Optional[SwapQuote]:
        for item in parsed:
            data = item.data
            if data.get("success") is not True:
                continue
            if data.get("operation") not in QUOTE_OPERATIONS:
                continue
            quote = data.get("quote")
            if not isinstance(quote, Mapping):
                continue
            try:
                return self._normalize_quote(data, quote)
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed swap quote in observation #%d: %s", item.index, exc)
        return None

    def _normalize_quote(self, data: Mapping[str, Any], quote: Mapping[str, Any]) -> SwapQuote:
        network = _as_str(data.get("network")) or self.network
        gas = data.get("gasEstimate", quote.get("gasEstimate"))
        return SwapQuote(
            operation=data["operation"],
            network=network,
            input=self._quote_leg(quote["input"], network),
            output=self._quote_leg(quote["output"], network),
            path=[str(hop) for hop in _as_list(quote.get("path"))],
            fees=_as_list(quote.get("fees")),
            exchange_rate=str(quote.get("exchangeRate") or "0"),
            gas_estimate=None if gas is None else str(gas),
        )

    def _quote_leg(self, leg: Mapping[str, Any], network: str) -> QuoteLeg:
        token_id = str(leg.get("token") or leg.get("tokenId") or "")
        if not token_id:
            raise ValueError("quote leg has no token")
        amount = str(leg.get("amount") or "0")
        return QuoteLeg(
            token=TokenRegistry.display_name(token_id, network),
            token_id=token_id,
            amount=amount,
            formatted=str(leg.get("formatted") or amount),
        )

    # ---- Next step ----

    def _select_next_step(
        self,
        parsed: Sequence[_Parsed],
        fallback: Optional[FlowFamily],
        fallback_tool: Optional[str],
        winner: Optional[Candidate] = None,
    ) -> Optional[PendingStep]:
        """
        The queued step must follow the payload that is actually emitted.

        The winning observation's own next step is used when it has one.
        Otherwise only observations without a payload are considered.
        """
        pool: Sequence[_Parsed] = parsed
        if winner is not None:
            for item in parsed:
                if item.index == winner.index:
                    own = self._next_step_for(item, fallback, fallback_tool)
                    if own is not None:
                        return own[1]
                    break
            pool = [item for item in parsed if not item.payload]

        best: Optional[Tuple[int, PendingStep]] = None
        for item in pool:
            found = self._next_step_for(item, fallback, fallback_tool)
            if found is None:
                continue
            # later observations win ties
            if best is None or found[0] >= best[0]:
                best = found
        return best[1] if best else None

    def _next_step_for(
        self,
        item: _Parsed,
        fallback: Optional[FlowFamily],
        fallback_tool: Optional[str],
    ) -> Optional[Tuple[int, PendingStep]]:
        data = item.data
        family = resolve_family(data, fallback)
        operation = _as_str(data.get("operation"))
        step = _as_str(data.get("step"))
        explicit = _as_str(data.get("nextStep"))

        if explicit:
            specificity, to_step, default_instruction = _EXPLICIT, explicit, None
        else:
            transition = find_transition(family, step, operation)
            if transition is None:
                return None
            specificity = _INFERRED
            to_step = transition.to_step
            default_instruction = transition.default_instruction

        params = data.get("originalParams")
        pending = PendingStep(
            tool=_tool_name(data, family, fallback_tool),
            operation=operation or "unknown",
            step=to_step,
            original_params=dict(params) if isinstance(params, Mapping) else {},
            instructions=_as_str(data.get("instructions")) or _as_str(data.get("message")) or default_instruction,
        )
        return specificity, pending


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _as_list(value: Any) -> list:
    if not value:
        return []
    if isinstance(value, (str, Mapping)):
        return [value]
    return list(value)


def _tool_name(data: Mapping[str, Any], family: Optional[FlowFamily], fallback_tool: Optional[str]) -> str:
    if family is not None:
        return family.tool
    info = data.get("toolInfo")
    if isinstance(info, Mapping) and _as_str(info.get("name")):
        return info["name"].strip()
    return fallback_tool or GENERIC_TOOL
