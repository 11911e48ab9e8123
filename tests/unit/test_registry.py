import pytest

from flow_gateway.errors import FlowExecutionError
from flow_gateway.flows.registry import (
    BONZO_DEPOSIT,
    INFINITY_POOL,
    TRANSITIONS,
    classify_candidate,
    family_for_tool,
    find_transition,
    resolve_family,
)
from flow_gateway.flows.templates import build_instruction
from flow_gateway.models.flow import CandidateRank, PendingStep


@pytest.mark.parametrize(
    "step,operation,expected",
    [
        ("token_association", None, CandidateRank.ASSOCIATION),
        (None, "associate_tokens", CandidateRank.ASSOCIATION),
        (None, "associate_whbar", CandidateRank.ASSOCIATION),
        ("token_approval", None, CandidateRank.APPROVAL),
        (None, "approve_sauce", CandidateRank.APPROVAL),
        (None, "approve_anything", CandidateRank.APPROVAL),
        ("token_approval", "associate_tokens", CandidateRank.APPROVAL),
        ("stake", "stake_sauce", CandidateRank.OTHER),
        (None, None, CandidateRank.OTHER),
    ],
)
def test_classify_candidate(step, operation, expected):
    assert classify_candidate(step, operation) == expected


def test_resolve_family_by_signal_tiers():
    assert resolve_family({"toolType": "infinity_pool"}) is INFINITY_POOL
    assert resolve_family({"toolInfo": {"name": "bonzo_approve_step_tool"}}) is BONZO_DEPOSIT
    assert resolve_family({"protocol": "Bonzo Finance"}) is BONZO_DEPOSIT
    assert resolve_family({"operation": "stake_sauce"}) is INFINITY_POOL
    assert resolve_family({"originalParams": {"operation": "full_deposit_flow"}}) is BONZO_DEPOSIT
    assert resolve_family({"operation": "transfer"}) is None


def test_earlier_tier_wins_over_later_tier():
    obs = {"toolType": "bonzo_deposit", "operation": "associate_tokens"}
    assert resolve_family(obs) is BONZO_DEPOSIT


def test_ambiguous_tier_uses_fallback_only_when_it_matches():
    obs = {"originalParams": {"sauceAmount": 1, "hbarAmount": 2}}
    assert resolve_family(obs) is None
    assert resolve_family(obs, fallback=BONZO_DEPOSIT) is BONZO_DEPOSIT


def test_unmatched_observation_uses_fallback():
    assert resolve_family({"operation": "approve_x"}, fallback=INFINITY_POOL) is INFINITY_POOL


def test_transition_table_is_exact():
    row = find_transition(INFINITY_POOL, "token_association", "associate_tokens")
    assert row.to_step == "approval"
    assert find_transition(INFINITY_POOL, "token_association", "associate_token") is None
    assert find_transition(None, "token_association", "associate_tokens") is None
    assert {(row.family, row.to_step) for row in TRANSITIONS} >= {
        ("infinity_pool", "approval"),
        ("infinity_pool", "stake"),
        ("bonzo_deposit", "deposit"),
    }


def test_family_for_tool():
    assert family_for_tool("saucerswap_infinity_pool_step_tool") is INFINITY_POOL
    assert family_for_tool("bonzo_deposit_tool") is BONZO_DEPOSIT
    assert family_for_tool("agent") is None
    assert family_for_tool(None) is None


def test_infinity_pool_instructions():
    approval = PendingStep(
        tool="saucerswap_infinity_pool_tool",
        operation="associate_tokens",
        step="approval",
        original_params={"sauceAmount": 50},
    )
    stake = PendingStep(
        tool="saucerswap_infinity_pool_tool",
        operation="approve_sauce",
        step="stake",
        original_params={"sauceAmount": 50},
    )

    assert build_instruction(approval, "0.0.1001") == (
        'Execute SAUCE approval for staking: Use saucerswap_infinity_pool_tool with '
        'operation "approve_sauce", sauceAmount 50, userAccountId "0.0.1001"'
    )
    assert build_instruction(stake, "0.0.1001") == (
        "Use saucerswap_infinity_pool_step_tool to stake 50 SAUCE for account 0.0.1001"
    )


def test_bonzo_instructions_apply_defaults():
    deposit = PendingStep(
        tool="bonzo_deposit_tool",
        operation="associate_whbar",
        step="deposit",
        original_params={"hbarAmount": 10},
    )
    approval = PendingStep(
        tool="bonzo_deposit_tool",
        operation="associate_token",
        step="approval",
        original_params={"token": "usdc", "amount": 25},
    )

    assert build_instruction(deposit, "0.0.5") == (
        'Use bonzo_deposit_step_tool to deposit 10 HBAR for account 0.0.5 with token "hbar", '
        "amount 10, and referral code 0"
    )
    assert build_instruction(approval, "0.0.5") == (
        "Use bonzo_approve_step_tool to approve 25 USDC for Bonzo Finance LendingPool with "
        'token "usdc", amount 25, userAccountId "0.0.5"'
    )


def test_generic_instruction_for_unknown_pair():
    step = PendingStep(tool="agent", operation="x", step="finalize")
    assert build_instruction(step, "0.0.5") == "Execute finalize step for agent"


def test_instruction_requires_step_label():
    with pytest.raises(FlowExecutionError) as excinfo:
        build_instruction(PendingStep(tool="bonzo_deposit_tool", operation="x", step=""), "0.0.5")

    assert excinfo.value.tool == "bonzo_deposit_tool"
