"""Follow-up instructions sent to the agent once a signed step is confirmed."""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Tuple

from flow_gateway.errors import FlowExecutionError
from flow_gateway.flows.registry import family_for_tool
from flow_gateway.models.flow import PendingStep

InstructionBuilder = Callable[[Mapping[str, Any], str], str]


def _bonzo_token(params: Mapping[str, Any]) -> str:
    return str(params.get("token") or "hbar")


def _bonzo_amount(params: Mapping[str, Any]) -> Any:
    return params.get("amount") or params.get("hbarAmount") or 0


def _bonzo_approval(params: Mapping[str, Any], account: str) -> str:
    token = _bonzo_token(params)
    amount = _bonzo_amount(params)
    return (
        f"Use bonzo_approve_step_tool to approve {amount} {token.upper()} for Bonzo Finance "
        f'LendingPool with token "{token}", amount {amount}, userAccountId "{account}"'
    )


def _bonzo_deposit(params: Mapping[str, Any], account: str) -> str:
    token = _bonzo_token(params)
    amount = _bonzo_amount(params)
    referral = params.get("referralCode") or 0
    return (
        f"Use bonzo_deposit_step_tool to deposit {amount} {token.upper()} for account {account} "
        f'with token "{token}", amount {amount}, and referral code {referral}'
    )


def _infinity_approval(params: Mapping[str, Any], account: str) -> str:
    sauce = params.get("sauceAmount") or 0
    return (
        "Execute SAUCE approval for staking: Use saucerswap_infinity_pool_tool with "
        f'operation "approve_sauce", sauceAmount {sauce}, userAccountId "{account}"'
    )


def _infinity_stake(params: Mapping[str, Any], account: str) -> str:
    sauce = params.get("sauceAmount") or 0
    return f"Use saucerswap_infinity_pool_step_tool to stake {sauce} SAUCE for account {account}"


TEMPLATES: Dict[Tuple[str, str], InstructionBuilder] = {
    ("bonzo_deposit", "approval"): _bonzo_approval,
    ("bonzo_deposit", "deposit"): _bonzo_deposit,
    ("infinity_pool", "approval"): _infinity_approval,
    ("infinity_pool", "stake"): _infinity_stake,
}


def build_instruction(step: PendingStep, user_account_id: str) -> str:
    """Turn a queued step into the next natural-language instruction."""
    if not step.step:
        raise FlowExecutionError("Pending step has no step label", tool=step.tool)
    family = family_for_tool(step.tool)
    builder = TEMPLATES.get((family.name, step.step)) if family else None
    if builder is None:
        return f"Execute {step.step} step for {step.tool}"
    return builder(step.original_params or {}, user_account_id)
