"""
Connection protocol handler.

Maps inbound frames to session, agent and sequencer operations and maps the
outcomes back to outbound frames. Transport-agnostic: the WebSocket layer
supplies a connection handle, raw frames and an ``Emitter``.
"""

from __future__ import annotations

import logging

from flow_gateway.config import GatewaySettings
from flow_gateway.errors import InvalidMessageError, UnsupportedMessageTypeError
from flow_gateway.flows.sequencer import StepSequencer
from flow_gateway.gateway.emitter import Emitter
from flow_gateway.models.messages import (
    ConnectionAuth,
    TransactionResult,
    UserMessage,
    parse_inbound,
)
from flow_gateway.service.session_store import ConnectionHandle, SessionStore

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = (
    "Connected to the Hedera flow gateway. "
    "Please authenticate with your account ID first using CONNECTION_AUTH message."
)
INVALID_FORMAT_MESSAGE = "Error processing message. Invalid format."
AUTH_REQUIRED_MESSAGE = "Please authenticate first using CONNECTION_AUTH message."


class ConnectionProtocolHandler:
    def __init__(self, store: SessionStore, sequencer: StepSequencer, settings: GatewaySettings):
        self.store = store
        self.sequencer = sequencer
        self.settings = settings

    async def on_connect(self, handle: ConnectionHandle, emitter: Emitter) -> None:
        logger.info("Connection %s opened", handle)
        await emitter.info(WELCOME_MESSAGE)

    def on_disconnect(self, handle: ConnectionHandle) -> None:
        logger.info("Connection %s closed", handle)
        self.store.destroy(handle)

    async def handle_raw(self, handle: ConnectionHandle, raw: str | bytes, emitter: Emitter) -> None:
        try:
            message = parse_inbound(raw)
        except UnsupportedMessageTypeError as exc:
            logger.warning("Connection %s sent unsupported type %s", handle, exc.message_type)
            await emitter.warning(str(exc))
            return
        except InvalidMessageError as exc:
            logger.warning("Connection %s sent an invalid frame: %s", handle, exc)
            await emitter.error(INVALID_FORMAT_MESSAGE)
            return

        if isinstance(message, ConnectionAuth):
            await self.handle_auth(handle, message, emitter)
        elif isinstance(message, UserMessage):
            await self.handle_user_message(handle, message, emitter)
        elif isinstance(message, TransactionResult):
            await self.sequencer.on_transaction_result(handle, message, emitter)

    # ---- Message kinds ----

    async def handle_auth(self, handle: ConnectionHandle, message: ConnectionAuth, emitter: Emitter) -> None:
        try:
            self.store.create(handle, message.user_account_id)
        except Exception as exc:
            logger.exception("Authentication failed for %s", message.user_account_id)
            await emitter.error(f"Authentication failed: {exc}")
            return
        await emitter.info(
            f"✅ Authenticated successfully with account {message.user_account_id}. "
            "You can now start asking questions!"
        )

    async def handle_user_message(self, handle: ConnectionHandle, message: UserMessage, emitter: Emitter) -> None:
        connection = self.store.get(handle)
        if connection is None:
            await emitter.error(AUTH_REQUIRED_MESSAGE)
            return

        requested = (message.user_account_id or "").strip()
        if requested and requested != connection.user_account_id:
            try:
                connection = self.store.replace(handle, requested)
            except Exception as exc:
                logger.exception("Account switch to %s failed", requested)
                await emitter.error(f"Authentication failed: {exc}")
                return
            await emitter.info(f"Switched to account {requested}")

        if self.settings.force_clear_memory:
            connection.memory.clear()

        try:
            result = await connection.agent.invoke(message.message, connection.memory)
        except Exception as exc:
            logger.exception("Agent round failed for %s", connection.user_account_id)
            if self.store.get(handle) is connection:
                await emitter.error(f"Error processing your request: {exc}")
            return

        if self.store.get(handle) is not connection:
            logger.info("Connection %s closed during agent round; discarding result", handle)
            return

        await self.sequencer.publish(connection, emitter, result, original_query=message.message)
