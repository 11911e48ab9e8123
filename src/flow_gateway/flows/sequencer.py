"""
Step sequencing for externally signed multi-step flows.

    IDLE --payload emitted with next step--> AWAITING_SIGNATURE
    AWAITING_SIGNATURE --success result--> EXECUTING_NEXT
    AWAITING_SIGNATURE --failure result--> IDLE
    EXECUTING_NEXT --new payload with next step--> AWAITING_SIGNATURE
    EXECUTING_NEXT --no payload, no next step or error--> IDLE

The pending step is taken off the connection before the follow-up round runs,
so a step is never executed twice.
"""

from __future__ import annotations

import logging

from flow_gateway.agents.base import AgentResult
from flow_gateway.flows.interpreter import ResponseInterpreter
from flow_gateway.flows.templates import build_instruction
from flow_gateway.gateway.emitter import Emitter
from flow_gateway.models.flow import Interpretation
from flow_gateway.models.messages import TransactionResult
from flow_gateway.service.session_store import Connection, ConnectionHandle, SessionStore

logger = logging.getLogger(__name__)

DEFAULT_QUOTE_MESSAGE = "Swap quote available"


class StepSequencer:
    def __init__(self, store: SessionStore, interpreter: ResponseInterpreter):
        self.store = store
        self.interpreter = interpreter

    async def publish(
        self,
        connection: Connection,
        emitter: Emitter,
        result: AgentResult,
        original_query: str,
        fallback_tool: str | None = None,
    ) -> Interpretation:
        """
        Interpret one round and emit its outcome in wire order:
        swap quote, agent response, then the payload to sign.
        """
        interpretation = self.interpreter.interpret(result.observations, fallback_tool)

        if interpretation.swap_quote is not None:
            await emitter.swap_quote(interpretation.swap_quote, result.text or DEFAULT_QUOTE_MESSAGE)

        await emitter.agent_response(result.text, interpretation.has_transaction)

        if interpretation.transaction_bytes:
            # a newer payload supersedes whatever was queued before it
            connection.pending_step = interpretation.next_step
            await emitter.transaction_to_sign(interpretation.transaction_bytes, original_query)
        return interpretation

    async def on_transaction_result(
        self,
        handle: ConnectionHandle,
        result: TransactionResult,
        emitter: Emitter,
    ) -> None:
        connection = self.store.get(handle)

        if not result.success:
            if connection is not None:
                dropped = connection.take_pending_step()
                if dropped is not None:
                    logger.info(
                        "Dropped pending step %s for %s after failed transaction",
                        dropped.step,
                        connection.user_account_id,
                    )
            await emitter.error(f"Transaction error: {result.error or 'Unknown error'}")
            return

        await emitter.info(
            "Transaction executed successfully!\n"
            f"ID: {result.transaction_id or 'N/A'}\n"
            f"Status: {result.status or 'SUCCESS'}"
        )
        if connection is None:
            logger.debug("Transaction result on connection %s without a session", handle)
            return
        if connection.pending_step is None:
            return
        await self.execute_next_step(connection, emitter)

    async def execute_next_step(self, connection: Connection, emitter: Emitter) -> None:
        step = connection.take_pending_step()
        if step is None:
            return

        connection.executing = True
        try:
            instruction = build_instruction(step, connection.user_account_id)
            logger.info(
                "Executing step %s via %s for %s",
                step.step,
                step.tool,
                connection.user_account_id,
            )
            result = await connection.agent.invoke(instruction, connection.memory)

            if self.store.get(connection.handle) is not connection:
                logger.info("Connection %s closed during step %s; discarding result", connection.handle, step.step)
                return

            await self.publish(
                connection,
                emitter,
                result,
                original_query=f"Next step: {step.step}",
                fallback_tool=step.tool,
            )
        except Exception as exc:
            logger.exception("Step %s failed for %s", step.step, connection.user_account_id)
            connection.pending_step = None
            if self.store.get(connection.handle) is connection:
                await emitter.error(f"Error executing next step: {exc}")
        finally:
            connection.executing = False
