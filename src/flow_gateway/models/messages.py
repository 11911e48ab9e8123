"""
WebSocket wire models.

Every frame is a JSON object with a ``type`` and an epoch-millisecond
``timestamp``. Field names are camelCase on the wire and snake_case in Python.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from flow_gateway.errors import InvalidMessageError, UnsupportedMessageTypeError


class MessageType(str, Enum):
    """Envelope types understood by the gateway."""
    CONNECTION_AUTH = "CONNECTION_AUTH"
    USER_MESSAGE = "USER_MESSAGE"
    TRANSACTION_RESULT = "TRANSACTION_RESULT"
    SYSTEM_MESSAGE = "SYSTEM_MESSAGE"
    AGENT_RESPONSE = "AGENT_RESPONSE"
    TRANSACTION_TO_SIGN = "TRANSACTION_TO_SIGN"
    SWAP_QUOTE = "SWAP_QUOTE"


INBOUND_TYPES = frozenset(
    {
        MessageType.CONNECTION_AUTH.value,
        MessageType.USER_MESSAGE.value,
        MessageType.TRANSACTION_RESULT.value,
    }
)


class NoticeLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# ---- Inbound ----


class ConnectionAuth(WireModel):
    type: Literal["CONNECTION_AUTH"]
    user_account_id: str = Field(..., min_length=1, description="Hedera account, e.g. 0.0.1234")
    timestamp: Optional[int] = None

    @field_validator("user_account_id")
    @classmethod
    def _strip_account(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("userAccountId must not be blank")
        return value


class UserMessage(WireModel):
    type: Literal["USER_MESSAGE"]
    message: str = Field(..., min_length=1)
    user_account_id: Optional[str] = None
    timestamp: Optional[int] = None


class TransactionResult(WireModel):
    type: Literal["TRANSACTION_RESULT"]
    success: bool
    transaction_id: Optional[str] = None
    status: Optional[str] = None
    error: Optional[str] = None
    timestamp: Optional[int] = None


InboundMessage = Annotated[
    Union[ConnectionAuth, UserMessage, TransactionResult],
    Field(discriminator="type"),
]

_INBOUND_ADAPTER: TypeAdapter[InboundMessage] = TypeAdapter(InboundMessage)


def parse_inbound(raw: str | bytes) -> Union[ConnectionAuth, UserMessage, TransactionResult]:
    """
    Decode one inbound frame.

    Raises:
        InvalidMessageError: The frame is not a JSON object or fails validation
        UnsupportedMessageTypeError: The envelope type is not an inbound kind
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as exc:
        raise InvalidMessageError(f"Frame is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidMessageError("Frame must be a JSON object")

    message_type = data.get("type")
    if message_type not in INBOUND_TYPES:
        raise UnsupportedMessageTypeError(message_type if isinstance(message_type, str) else None)

    try:
        return _INBOUND_ADAPTER.validate_python(data)
    except ValidationError as exc:
        raise InvalidMessageError(str(exc)) from exc


# ---- Outbound ----


class QuoteLeg(WireModel):
    token: str
    token_id: str
    amount: str
    formatted: str


class SwapQuote(WireModel):
    """Normalized swap quote forwarded to the client for display."""
    operation: str
    network: str
    input: QuoteLeg
    output: QuoteLeg
    path: List[str] = Field(default_factory=list)
    fees: List[Any] = Field(default_factory=list)
    exchange_rate: str = "0"
    gas_estimate: Optional[str] = None


class SystemNotice(WireModel):
    type: Literal["SYSTEM_MESSAGE"] = "SYSTEM_MESSAGE"
    message: str
    level: NoticeLevel = NoticeLevel.INFO
    timestamp: int


class AgentResponse(WireModel):
    type: Literal["AGENT_RESPONSE"] = "AGENT_RESPONSE"
    message: str
    has_transaction: bool = False
    timestamp: int


class TransactionToSign(WireModel):
    type: Literal["TRANSACTION_TO_SIGN"] = "TRANSACTION_TO_SIGN"
    transaction_bytes: List[int]
    original_query: str
    timestamp: int


class SwapQuoteMessage(WireModel):
    type: Literal["SWAP_QUOTE"] = "SWAP_QUOTE"
    quote: SwapQuote
    original_message: str
    timestamp: int


OutboundMessage = Union[SystemNotice, AgentResponse, TransactionToSign, SwapQuoteMessage]
