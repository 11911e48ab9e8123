import pytest

from flow_gateway.errors import InvalidMessageError, UnsupportedMessageTypeError
from flow_gateway.models.messages import (
    AgentResponse,
    ConnectionAuth,
    QuoteLeg,
    SwapQuote,
    SwapQuoteMessage,
    TransactionResult,
    TransactionToSign,
    UserMessage,
    parse_inbound,
)


def test_parse_inbound_kinds():
    auth = parse_inbound('{"type": "CONNECTION_AUTH", "userAccountId": " 0.0.42 ", "timestamp": 1}')
    user = parse_inbound('{"type": "USER_MESSAGE", "message": "hi"}')
    tx = parse_inbound('{"type": "TRANSACTION_RESULT", "success": false, "error": "rejected"}')

    assert isinstance(auth, ConnectionAuth)
    assert auth.user_account_id == "0.0.42"
    assert isinstance(user, UserMessage)
    assert user.user_account_id is None
    assert isinstance(tx, TransactionResult)
    assert tx.success is False
    assert tx.error == "rejected"


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[1, 2, 3]",
        '{"type": "CONNECTION_AUTH"}',
        '{"type": "CONNECTION_AUTH", "userAccountId": "   "}',
        '{"type": "TRANSACTION_RESULT"}',
    ],
)
def test_parse_inbound_invalid(raw):
    with pytest.raises(InvalidMessageError):
        parse_inbound(raw)


@pytest.mark.parametrize("raw", ['{"type": "PING"}', '{"message": "no type"}', '{"type": "AGENT_RESPONSE"}'])
def test_parse_inbound_unsupported(raw):
    with pytest.raises(UnsupportedMessageTypeError):
        parse_inbound(raw)


def test_outbound_wire_shape_is_camel_case():
    response = AgentResponse(message="ok", has_transaction=True, timestamp=5).to_wire()
    to_sign = TransactionToSign(transaction_bytes=[1, 2], original_query="stake", timestamp=6).to_wire()

    assert response == {"type": "AGENT_RESPONSE", "message": "ok", "hasTransaction": True, "timestamp": 5}
    assert to_sign == {
        "type": "TRANSACTION_TO_SIGN",
        "transactionBytes": [1, 2],
        "originalQuery": "stake",
        "timestamp": 6,
    }


def test_swap_quote_message_wire_shape():
    leg = QuoteLeg(token="HBAR", token_id="HBAR", amount="1", formatted="1")
    quote = SwapQuote(operation="get_amounts_out", network="mainnet", input=leg, output=leg)

    wire = SwapQuoteMessage(quote=quote, original_message="quote", timestamp=7).to_wire()

    assert wire["type"] == "SWAP_QUOTE"
    assert wire["originalMessage"] == "quote"
    assert wire["quote"]["input"]["tokenId"] == "HBAR"
    assert wire["quote"]["exchangeRate"] == "0"
    assert "gasEstimate" not in wire["quote"]
