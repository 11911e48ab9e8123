"""WebSocket protocol surface of the gateway."""
