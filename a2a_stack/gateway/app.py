from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from a2a_stack.agents.registry import AgentRegistry
from a2a_stack.config.stack_state import StackState
from a2a_stack.errors import ProxyError
from a2a_stack.gateway.loki_client import LokiClient
from a2a_stack.orchestrator.base.logql_logger import LogQLLogger

log = LogQLLogger(__name__)


async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
    log.warning("proxy_upstream_failure", path=request.url.path, kind=exc.kind.value,
                upstream_status=exc.upstream_status)
    return JSONResponse(status_code=502, content=exc.to_body())


def create_app(
    state: StackState,
    agent_registry: AgentRegistry,
    loki_client: Optional[LokiClient] = None,
    static_dir: Optional[Path] = None,
    instrument: bool = False,
) -> FastAPI:
    """
    Application factory for the dashboard proxy.

    The stack state is handed in already loaded and reconciled; the app only
    reads it. Loki is reached on the state's host port unless a client is given.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("proxy_startup", loki=app.state.loki_client.base_url, dashboard_port=state.ports.dashboard)
        yield
        log.info("proxy_shutdown")

    app = FastAPI(title="A2A Dashboard Proxy", version="0.1.0", lifespan=lifespan)
    app.state.stack_state = state
    app.state.agent_registry = agent_registry
    app.state.loki_client = loki_client or LokiClient(f"http://localhost:{state.ports.loki}")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ProxyError, proxy_error_handler)

    from a2a_stack.gateway.routes.agents import router as agents_router
    from a2a_stack.gateway.routes.config import router as config_router
    from a2a_stack.gateway.routes.health import router as health_router
    from a2a_stack.gateway.routes.logs import router as logs_router

    app.include_router(health_router)
    app.include_router(config_router)
    app.include_router(logs_router)
    app.include_router(agents_router)

    # Mounted last so API routes win over the SPA
    if static_dir is not None and Path(static_dir).is_dir():
        app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="dashboard")
        log.info("dashboard_static_mounted", directory=str(static_dir))

    if instrument:
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

        FastAPIInstrumentor.instrument_app(app)
        log.info("instrumentation_enabled")

    return app
