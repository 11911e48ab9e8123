from flow_gateway.service.session_store import Connection, SessionStore

__all__ = ["Connection", "SessionStore"]
