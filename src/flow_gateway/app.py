import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from flow_gateway import __version__
from flow_gateway.agents.base import AgentFactory
from flow_gateway.agents.factory import build_agent_factory
from flow_gateway.agents.memory import ConversationMemory
from flow_gateway.config import GatewaySettings, get_settings
from flow_gateway.flows.interpreter import ResponseInterpreter
from flow_gateway.flows.sequencer import StepSequencer
from flow_gateway.gateway.handler import ConnectionProtocolHandler
from flow_gateway.gateway.websocket import router as websocket_router
from flow_gateway.infrastructure.rate_limiter import limit_health, setup_rate_limiter
from flow_gateway.service.session_store import SessionStore

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[GatewaySettings] = None,
    agent_factory: Optional[AgentFactory] = None,
) -> FastAPI:
    settings = settings or get_settings()
    agent_factory = agent_factory or build_agent_factory(settings)

    store = SessionStore(
        agent_factory,
        memory_factory=lambda: ConversationMemory(max_recent=settings.memory_window),
    )
    sequencer = StepSequencer(store, ResponseInterpreter(network=settings.network))
    handler = ConnectionProtocolHandler(store, sequencer, settings)

    app = FastAPI(title="Hedera Flow Gateway", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    limiter = setup_rate_limiter(app)

    app.state.settings = settings
    app.state.store = store
    app.state.handler = handler
    app.include_router(websocket_router)

    @app.get("/health")
    @limit_health(limiter, settings.rate_limit_health)
    async def health_check(request: Request):
        return {"status": "ok", "connections": request.app.state.store.count()}

    logger.info("Gateway ready on network %s with model %s", settings.network, settings.llm_model)
    return app
