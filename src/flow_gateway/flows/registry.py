"""
Static flow tables: integration families, step transitions and payload ranking.

Tool observations are loosely shaped, so the family an observation belongs to is
resolved from ordered signal tiers (``toolType``, ``toolInfo.name``,
``protocol``, ``operation``, parameter hints). The first tier that matches
anything decides; if it matches more than one family the result is ambiguous
and nothing is inferred.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple

from flow_gateway.models.flow import CandidateRank

logger = logging.getLogger(__name__)

GENERIC_TOOL = "agent"


@dataclass(frozen=True)
class FlowFamily:
    name: str
    tool: str
    tool_types: FrozenSet[str]
    tool_names: FrozenSet[str]
    protocols: FrozenSet[str]
    operations: FrozenSet[str]
    param_hints: FrozenSet[str]


@dataclass(frozen=True)
class Transition:
    family: str
    from_step: str
    from_operation: str
    to_step: str
    default_instruction: str


INFINITY_POOL = FlowFamily(
    name="infinity_pool",
    tool="saucerswap_infinity_pool_tool",
    tool_types=frozenset({"infinity_pool"}),
    tool_names=frozenset({"saucerswap_infinity_pool_tool", "saucerswap_infinity_pool_step_tool"}),
    protocols=frozenset({"saucerswap", "saucerswap infinity pool"}),
    operations=frozenset(
        {
            "associate_tokens",
            "approve_sauce",
            "stake_sauce",
            "unstake_xsauce",
            "full_stake_flow",
            "full_unstake_flow",
        }
    ),
    param_hints=frozenset({"sauceAmount", "xSauceAmount"}),
)

BONZO_DEPOSIT = FlowFamily(
    name="bonzo_deposit",
    tool="bonzo_deposit_tool",
    tool_types=frozenset({"bonzo_deposit", "bonzo"}),
    tool_names=frozenset({"bonzo_deposit_tool", "bonzo_deposit_step_tool", "bonzo_approve_step_tool"}),
    protocols=frozenset({"bonzo finance", "bonzo"}),
    operations=frozenset(
        {"associate_token", "associate_whbar", "approve_token", "deposit_token", "full_deposit_flow"}
    ),
    param_hints=frozenset({"hbarAmount", "referralCode"}),
)

FAMILIES: Dict[str, FlowFamily] = {family.name: family for family in (INFINITY_POOL, BONZO_DEPOSIT)}

TRANSITIONS: Tuple[Transition, ...] = (
    Transition(
        family="infinity_pool",
        from_step="token_association",
        from_operation="associate_tokens",
        to_step="approval",
        default_instruction=(
            "Sign this transaction to associate SAUCE and xSAUCE with your account. "
            "The SAUCE approval will be prepared once it is confirmed."
        ),
    ),
    Transition(
        family="infinity_pool",
        from_step="token_approval",
        from_operation="approve_sauce",
        to_step="stake",
        default_instruction=(
            "Sign this transaction to approve SAUCE spending. "
            "Staking will be prepared once it is confirmed."
        ),
    ),
    Transition(
        family="bonzo_deposit",
        from_step="token_association",
        from_operation="associate_token",
        to_step="approval",
        default_instruction=(
            "Sign this transaction to associate the token with your account. "
            "The LendingPool approval will be prepared once it is confirmed."
        ),
    ),
    Transition(
        family="bonzo_deposit",
        from_step="token_association",
        from_operation="associate_whbar",
        to_step="deposit",
        default_instruction=(
            "Sign this transaction to associate WHBAR with your account. "
            "The deposit will be prepared once it is confirmed."
        ),
    ),
    Transition(
        family="bonzo_deposit",
        from_step="token_approval",
        from_operation="approve_token",
        to_step="deposit",
        default_instruction=(
            "Sign this transaction to approve the LendingPool. "
            "The deposit will be prepared once it is confirmed."
        ),
    ),
)

_TRANSITION_INDEX: Dict[Tuple[str, str, str], Transition] = {
    (row.family, row.from_step, row.from_operation): row for row in TRANSITIONS
}

# ---- Payload ranking ----

ASSOCIATION_STEPS = frozenset({"token_association"})
ASSOCIATION_OPERATIONS = frozenset({"associate_tokens", "associate_token", "associate_whbar"})
APPROVAL_STEPS = frozenset({"token_approval", "approval"})
APPROVAL_OPERATIONS = frozenset({"approve_sauce", "approve_token"})

_RANK_RULES: Tuple[Tuple[CandidateRank, Callable[[str, str], bool]], ...] = (
    (CandidateRank.ASSOCIATION, lambda step, operation: step in ASSOCIATION_STEPS),
    (CandidateRank.APPROVAL, lambda step, operation: step in APPROVAL_STEPS),
    (CandidateRank.ASSOCIATION, lambda step, operation: operation in ASSOCIATION_OPERATIONS),
    (CandidateRank.APPROVAL, lambda step, operation: operation in APPROVAL_OPERATIONS),
    (CandidateRank.ASSOCIATION, lambda step, operation: operation.startswith("associate_")),
    (CandidateRank.APPROVAL, lambda step, operation: operation.startswith("approve_")),
)


def classify_candidate(step: Optional[str], operation: Optional[str]) -> CandidateRank:
    """Assign exactly one rank: the first rule that fires wins."""
    step_key = (step or "").strip().lower()
    operation_key = (operation or "").strip().lower()
    for rank, rule in _RANK_RULES:
        if rule(step_key, operation_key):
            return rank
    return CandidateRank.OTHER


# ---- Family resolution ----


def _lower(value: Any) -> str:
    return value.strip().lower() if isinstance(value, str) else ""


def _tool_info_name(observation: Mapping[str, Any]) -> str:
    info = observation.get("toolInfo")
    if isinstance(info, Mapping):
        return _lower(info.get("name"))
    return ""


def _hint_matches(observation: Mapping[str, Any], family: FlowFamily) -> bool:
    params = observation.get("originalParams")
    if not isinstance(params, Mapping):
        return False
    if _lower(params.get("operation")) in family.operations:
        return True
    return any(key in params for key in family.param_hints)


_SIGNAL_TIERS: Tuple[Tuple[str, Callable[[Mapping[str, Any], FlowFamily], bool]], ...] = (
    ("toolType", lambda obs, fam: _lower(obs.get("toolType")) in fam.tool_types),
    ("toolInfo.name", lambda obs, fam: _tool_info_name(obs) in fam.tool_names),
    ("protocol", lambda obs, fam: _lower(obs.get("protocol")) in fam.protocols),
    ("operation", lambda obs, fam: _lower(obs.get("operation")) in fam.operations),
    ("originalParams", _hint_matches),
)


def family_for_tool(tool: Optional[str]) -> Optional[FlowFamily]:
    key = _lower(tool)
    if not key:
        return None
    for family in FAMILIES.values():
        if key == family.tool or key in family.tool_names:
            return family
    return None


def resolve_family(
    observation: Mapping[str, Any],
    fallback: Optional[FlowFamily] = None,
) -> Optional[FlowFamily]:
    """
    Decide which integration family an observation belongs to.

    The fallback family (the one whose step drove the current round) is used
    when no signal matches, and to break a tie it is part of. Any other tie is
    logged and left unresolved.
    """
    for signal, predicate in _SIGNAL_TIERS:
        matches: List[FlowFamily] = [fam for fam in FAMILIES.values() if predicate(observation, fam)]
        if not matches:
            continue
        if len(matches) == 1:
            return matches[0]
        if fallback is not None and fallback in matches:
            return fallback
        logger.warning(
            "Ambiguous flow family from %s: %s; skipping inference",
            signal,
            ", ".join(fam.name for fam in matches),
        )
        return None
    return fallback


def find_transition(
    family: Optional[FlowFamily],
    step: Optional[str],
    operation: Optional[str],
) -> Optional[Transition]:
    if family is None:
        return None
    return _TRANSITION_INDEX.get((family.name, _lower(step), _lower(operation)))

