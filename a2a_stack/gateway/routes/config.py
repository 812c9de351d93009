from fastapi import APIRouter, Depends

from a2a_stack.agents.registry import AgentRegistry
from a2a_stack.config.stack_state import StackState
from a2a_stack.gateway.dependencies import get_agent_registry, get_stack_state
from a2a_stack.gateway.schemas import ConfigSummary, TelemetryUrls

router = APIRouter(prefix="/api", tags=["config"])


def telemetry_urls(state: StackState) -> TelemetryUrls:
    return TelemetryUrls(
        prometheus_url=f"http://localhost:{state.ports.prometheus}",
        loki_url=f"http://localhost:{state.ports.loki}",
        tempo_url=f"http://localhost:{state.ports.tempo_http}",
        collector_http=state.collector.endpoint_http,
        collector_grpc=state.collector.endpoint_grpc,
    )


@router.get("/config", response_model=ConfigSummary)
async def get_config(
    state: StackState = Depends(get_stack_state),
    registry: AgentRegistry = Depends(get_agent_registry),
):
    """Telemetry URLs for the dashboard plus every linked agent."""
    return ConfigSummary(telemetry=telemetry_urls(state), agents=registry.load_all())
