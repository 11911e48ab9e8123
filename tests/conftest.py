import json
from dataclasses import dataclass
from typing import Any

import pytest

from flow_gateway.config import GatewaySettings
from flow_gateway.flows.interpreter import ResponseInterpreter
from flow_gateway.flows.sequencer import StepSequencer
from flow_gateway.gateway.emitter import Emitter
from flow_gateway.gateway.handler import ConnectionProtocolHandler
from flow_gateway.service.session_store import SessionStore
from tests.fakes import Outbox, ScriptedAgentFactory


@dataclass
class Gateway:
    settings: GatewaySettings
    factory: ScriptedAgentFactory
    store: SessionStore
    sequencer: StepSequencer
    handler: ConnectionProtocolHandler
    outbox: Outbox
    emitter: Emitter
    handle: str = "conn-1"

    async def send(self, **frame: Any) -> None:
        await self.handler.handle_raw(self.handle, json.dumps(frame), self.emitter)

    async def authenticate(self, account: str = "0.0.1001") -> None:
        await self.send(type="CONNECTION_AUTH", userAccountId=account)

    @property
    def connection(self):
        return self.store.get(self.handle)


@pytest.fixture
def agent_factory():
    return ScriptedAgentFactory()


@pytest.fixture
def outbox():
    return Outbox()


@pytest.fixture
def store(agent_factory):
    return SessionStore(agent_factory)


@pytest.fixture
def gateway(agent_factory, store, outbox):
    settings = GatewaySettings()
    sequencer = StepSequencer(store, ResponseInterpreter(network=settings.network))
    handler = ConnectionProtocolHandler(store, sequencer, settings)
    return Gateway(
        settings=settings,
        factory=agent_factory,
        store=store,
        sequencer=sequencer,
        handler=handler,
        outbox=outbox,
        emitter=Emitter(outbox.send),
    )
