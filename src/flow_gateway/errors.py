"""
Exception hierarchy for the flow gateway.
"""


class GatewayError(Exception):
    """Base exception for gateway errors."""

    pass


class ProtocolError(GatewayError):
    """Raised when an inbound message violates the wire contract."""

    pass


class InvalidMessageError(ProtocolError):
    """Raised for frames that are not JSON or fail schema validation."""

    pass


class UnsupportedMessageTypeError(ProtocolError):
    """Raised when the message envelope carries an unknown type."""

    def __init__(self, message_type: str | None):
        self.message_type = message_type
        super().__init__(f"Unsupported message type: {message_type}")


class ObservationParseError(GatewayError):
    """Raised when a tool observation or its payload cannot be decoded."""

    pass


class FlowExecutionError(GatewayError):
    """Raised when a queued step cannot be turned into an agent round."""

    def __init__(self, message: str, tool: str | None = None):
        self.tool = tool
        super().__init__(message)
