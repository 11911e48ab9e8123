from flow_gateway.flows.interpreter import ResponseInterpreter, decode_payload, parse_observation
from flow_gateway.flows.registry import FAMILIES, TRANSITIONS, classify_candidate, resolve_family
from flow_gateway.flows.templates import build_instruction
from flow_gateway.flows.tokens import TokenRegistry

__all__ = [
    "FAMILIES",
    "TRANSITIONS",
    "ResponseInterpreter",
    "TokenRegistry",
    "build_instruction",
    "classify_candidate",
    "decode_payload",
    "parse_observation",
    "resolve_family",
]
