from flow_gateway.models.flow import (
    Candidate,
    CandidateRank,
    FlowState,
    Interpretation,
    PendingStep,
)
from flow_gateway.models.messages import (
    AgentResponse,
    ConnectionAuth,
    MessageType,
    NoticeLevel,
    QuoteLeg,
    SwapQuote,
    SwapQuoteMessage,
    SystemNotice,
    TransactionResult,
    TransactionToSign,
    UserMessage,
    parse_inbound,
)

__all__ = [
    "AgentResponse",
    "Candidate",
    "CandidateRank",
    "ConnectionAuth",
    "FlowState",
    "Interpretation",
    "MessageType",
    "NoticeLevel",
    "PendingStep",
    "QuoteLeg",
    "SwapQuote",
    "SwapQuoteMessage",
    "SystemNotice",
    "TransactionResult",
    "TransactionToSign",
    "UserMessage",
    "parse_inbound",
]
