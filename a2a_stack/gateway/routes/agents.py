from fastapi import APIRouter, Depends, Query

from a2a_stack.errors import ProxyError, ProxyErrorKind
from a2a_stack.gateway.agent_status import flatten_streams, summarize
from a2a_stack.gateway.dependencies import get_loki_client
from a2a_stack.gateway.loki_client import LokiClient
from a2a_stack.gateway.schemas import AgentStatusResponse, ErrorResponse
from a2a_stack.gateway.timestamps import now_ms, resolve_window

router = APIRouter(
    prefix="/api/agents",
    tags=["agents"],
    responses={502: {"model": ErrorResponse, "description": "Loki query failed"}},
)


def service_selector(service_name: str) -> str:
    escaped = service_name.replace("\\", "\\\\").replace('"', '\\"')
    return f'{{service_name="{escaped}"}}'


@router.get("/{service_name}/status", response_model=AgentStatusResponse)
async def agent_status(
    service_name: str,
    lookback_min: int = Query(5, ge=1, le=24 * 60),
    limit: int = Query(250, ge=1),
    loki: LokiClient = Depends(get_loki_client),
):
    """Online flag, newest line and error count for one agent over the lookback window."""
    current = now_ms()
    start_ms, end_ms = resolve_window(None, None, current_ms=current, window_ms=lookback_min * 60_000)
    payload = await loki.query_range(service_selector(service_name), start_ms, end_ms, limit, "backward")
    try:
        lines = flatten_streams(payload)
    except (TypeError, ValueError, AttributeError) as e:
        raise ProxyError(ProxyErrorKind.DECODE_ERROR, f"Unexpected Loki stream shape: {e}") from e
    status = summarize(service_name, lines, current)
    return AgentStatusResponse(
        service_name=status.service_name,
        online=status.online,
        last_ts=status.last_ts,
        last_line=status.last_line,
        last_to=status.last_to,
        error_count=status.error_count,
        line_count=status.line_count,
    )
