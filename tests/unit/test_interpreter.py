import base64
import json

import pytest

from flow_gateway.errors import ObservationParseError
from flow_gateway.flows.interpreter import ResponseInterpreter, decode_payload, parse_observation
from tests.fakes import observation


@pytest.fixture
def interpreter():
    return ResponseInterpreter(network="mainnet")


def test_decode_payload_formats():
    assert decode_payload("0xAA") == b"\xaa"
    assert decode_payload("aabb") == b"\xaa\xbb"
    assert decode_payload("deadbeef") == b"\xde\xad\xbe\xef"
    assert decode_payload("deadbee=") == base64.b64decode("deadbee=")
    assert decode_payload([1, 2, 255]) == b"\x01\x02\xff"
    assert decode_payload({"type": "Buffer", "data": [10, 20]}) == b"\x0a\x14"
    assert decode_payload("qrs=") == b"\xaa\xbb"
    assert decode_payload(b"\x01") == b"\x01"


def test_decode_payload_empty_is_none():
    assert decode_payload(None) is None
    assert decode_payload("") is None
    assert decode_payload("0x") is None
    assert decode_payload([]) is None


@pytest.mark.parametrize("value", ["0xZZ", "not a payload!", [1, 300], [1, "a"], {"nope": 1}, 12])
def test_decode_payload_rejects_garbage(value):
    with pytest.raises(ObservationParseError):
        decode_payload(value)


def test_parse_observation_accepts_dict_string_and_bytes():
    assert parse_observation({"a": 1}) == {"a": 1}
    assert parse_observation('{"a": 1}') == {"a": 1}
    assert parse_observation(b'{"a": 1}') == {"a": 1}
    with pytest.raises(ObservationParseError):
        parse_observation("[1, 2]")
    with pytest.raises(ObservationParseError):
        parse_observation("Tool failed: timeout")


def test_association_beats_approval_regardless_of_order(interpreter):
    approval = observation(bytes="0xBB", operation="approve_sauce", step="token_approval")
    association = observation(bytes="0xAA", operation="associate_tokens", step="token_association")

    first = interpreter.interpret([approval, association])
    second = interpreter.interpret([association, approval])

    assert first.transaction_bytes == b"\xaa"
    assert second.transaction_bytes == b"\xaa"


def test_approval_beats_other_and_ties_keep_first(interpreter):
    stake = observation(bytes="0x01", operation="stake_sauce", step="stake")
    approve_a = observation(bytes="0x02", operation="approve_token")
    approve_b = observation(bytes="0x03", operation="approve_sauce")

    interpretation = interpreter.interpret([stake, approve_a, approve_b])

    assert interpretation.transaction_bytes == b"\x02"


def test_single_unranked_candidate_is_used(interpreter):
    interpretation = interpreter.interpret([observation(bytes="0x10", operation="swap")])
    assert interpretation.transaction_bytes == b"\x10"
    assert interpretation.next_step is None


def test_unparsable_payload_is_skipped_without_raising(interpreter):
    bad = observation(bytes="definitely-not-hex!", operation="associate_tokens", step="token_association")

    interpretation = interpreter.interpret([bad, "not json at all", 42])

    assert interpretation.transaction_bytes is None
    assert interpretation.next_step is None
    assert interpretation.swap_quote is None


def test_infers_approval_after_infinity_pool_association(interpreter):
    obs = observation(
        bytes="0xAA",
        operation="associate_tokens",
        step="token_association",
        originalParams={"sauceAmount": 50},
    )

    step = interpreter.interpret([obs]).next_step

    assert step.step == "approval"
    assert step.tool == "saucerswap_infinity_pool_tool"
    assert step.operation == "associate_tokens"
    assert step.original_params == {"sauceAmount": 50}
    assert step.instructions


def test_infers_bonzo_deposit_after_whbar_association(interpreter):
    obs = observation(
        bytes="0x01",
        operation="associate_whbar",
        step="token_association",
        toolInfo={"name": "bonzo_deposit_step_tool"},
        originalParams={"token": "hbar", "amount": 10},
    )

    step = interpreter.interpret([obs]).next_step

    assert step.step == "deposit"
    assert step.tool == "bonzo_deposit_tool"


def test_explicit_next_step_outranks_inferred(interpreter):
    explicit = observation(operation="custom", step="prepare", nextStep="deposit", toolType="bonzo_deposit")
    inferred = observation(operation="associate_tokens", step="token_association")

    step = interpreter.interpret([explicit, inferred]).next_step

    assert step.step == "deposit"
    assert step.tool == "bonzo_deposit_tool"


def test_later_explicit_next_step_wins(interpreter):
    first = observation(nextStep="approval", toolType="infinity_pool")
    second = observation(nextStep="stake", toolType="infinity_pool")

    assert interpreter.interpret([first, second]).next_step.step == "stake"


def test_explicit_next_step_without_family_uses_fallback_tool(interpreter):
    obs = observation(bytes="0xBB", operation="approve_x", step="token_approval", nextStep="stake")

    with_fallback = interpreter.interpret([obs], fallback_tool="saucerswap_infinity_pool_tool").next_step
    without = interpreter.interpret([obs]).next_step

    assert with_fallback.tool == "saucerswap_infinity_pool_tool"
    assert with_fallback.step == "stake"
    assert without.tool == "agent"
    assert without.step == "stake"


def test_ambiguous_family_does_not_infer(interpreter):
    obs = observation(
        bytes="0xAA",
        step="token_association",
        originalParams={"sauceAmount": 1, "hbarAmount": 2},
    )

    interpretation = interpreter.interpret([obs])

    assert interpretation.transaction_bytes == b"\xaa"
    assert interpretation.next_step is None


def _quote_observation(**overrides):
    data = {
        "success": True,
        "operation": "get_amounts_out",
        "quote": {
            "input": {"token": "HBAR", "amount": "100000000", "formatted": "1.0"},
            "output": {"token": "0.0.731861", "amount": "2500000", "formatted": "2.5"},
            "path": ["HBAR", "0.0.731861"],
            "exchangeRate": "2.5",
        },
        "gasEstimate": 150000,
    }
    data.update(overrides)
    return json.dumps(data)


def test_swap_quote_is_normalized(interpreter):
    quote = interpreter.interpret([_quote_observation()]).swap_quote

    assert quote.operation == "get_amounts_out"
    assert quote.network == "mainnet"
    assert quote.input.token == "HBAR"
    assert quote.output.token == "SAUCE"
    assert quote.output.token_id == "0.0.731861"
    assert quote.fees == []
    assert quote.exchange_rate == "2.5"
    assert quote.gas_estimate == "150000"


def test_swap_quote_requires_success_and_quote_operation(interpreter):
    assert interpreter.interpret([_quote_observation(success=False)]).swap_quote is None
    assert interpreter.interpret([_quote_observation(operation="swap")]).swap_quote is None


def test_swap_quote_defaults_and_unknown_tokens():
    interpreter = ResponseInterpreter(network="testnet")
    obs = json.dumps(
        {
            "success": True,
            "operation": "get_amounts_in",
            "quote": {
                "input": {"token": "0.0.999999", "amount": "1", "formatted": "1"},
                "output": {"token": "0.0.15057", "amount": "2", "formatted": "2"},
            },
        }
    )

    quote = interpreter.interpret([obs]).swap_quote

    assert quote.network == "testnet"
    assert quote.input.token == "0.0.999999"
    assert quote.output.token == "WHBAR"
    assert quote.path == []
    assert quote.exchange_rate == "0"
    assert quote.gas_estimate is None


def test_malformed_quote_is_skipped(interpreter):
    obs = json.dumps({"success": True, "operation": "get_amounts_out", "quote": {"input": "HBAR"}})
    assert interpreter.interpret([obs]).swap_quote is None


def test_next_step_follows_the_emitted_payload(interpreter):
    association = observation(bytes="0xAA", operation="associate_tokens", step="token_association")
    approval = observation(bytes="0xBB", operation="approve_sauce", step="token_approval", nextStep="stake")

    for order in ([association, approval], [approval, association]):
        interpretation = interpreter.interpret(order)

        assert interpretation.transaction_bytes == b"\xaa"
        assert interpretation.next_step.step == "approval"
        assert interpretation.next_step.tool == "saucerswap_infinity_pool_tool"


def test_emitted_payload_without_successor_ignores_competing_payloads(interpreter):
    association = observation(bytes="0xAA", operation="associate_custom", step="token_association")
    approval = observation(bytes="0xBB", operation="approve_sauce", step="token_approval", nextStep="stake")

    interpretation = interpreter.interpret([association, approval])

    assert interpretation.transaction_bytes == b"\xaa"
    assert interpretation.next_step is None


def test_emitted_payload_without_successor_uses_payload_free_hint(interpreter):
    association = observation(bytes="0xAA", operation="associate_custom", step="token_association")
    hint = observation(message="Approval comes next", nextStep="approval", toolType="infinity_pool")

    step = interpreter.interpret([association, hint]).next_step

    assert step.step == "approval"
    assert step.tool == "saucerswap_infinity_pool_tool"


def test_swap_quote_wraps_single_path_and_fee(interpreter):
    data = json.loads(_quote_observation())
    data["quote"]["path"] = "HBAR"
    data["quote"]["fees"] = "3000"

    quote = interpreter.interpret([json.dumps(data)]).swap_quote

    assert quote.path == ["HBAR"]
    assert quote.fees == ["3000"]
