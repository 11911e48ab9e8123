"""In-memory records that track one connection's position in a multi-step flow."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, Optional

from flow_gateway.models.messages import SwapQuote


class FlowState(str, Enum):
    IDLE = "idle"
    AWAITING_SIGNATURE = "awaiting_signature"
    EXECUTING_NEXT = "executing_next"


class CandidateRank(IntEnum):
    """Lower ranks are emitted first when several payloads come back in one round."""
    ASSOCIATION = 0
    APPROVAL = 1
    OTHER = 2


@dataclass
class PendingStep:
    """The step to run once the wallet confirms the transaction just emitted."""

    tool: str
    operation: str
    step: str
    original_params: Dict[str, Any] = field(default_factory=dict)
    instructions: Optional[str] = None


@dataclass(frozen=True)
class Candidate:
    payload: bytes
    operation: Optional[str]
    step: Optional[str]
    rank: CandidateRank
    index: int


@dataclass
class Interpretation:
    transaction_bytes: Optional[bytes] = None
    swap_quote: Optional[SwapQuote] = None
    next_step: Optional[PendingStep] = None

    @property
    def has_transaction(self) -> bool:
        return bool(self.transaction_bytes)
