from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from a2a_stack.config.constants import DEFAULT_QUERY_LIMIT
from a2a_stack.gateway.dependencies import get_loki_client
from a2a_stack.gateway.loki_client import LokiClient
from a2a_stack.gateway.schemas import ErrorResponse
from a2a_stack.gateway.timestamps import now_ms, resolve_window

router = APIRouter(
    prefix="/api/logs",
    tags=["logs"],
    responses={502: {"model": ErrorResponse, "description": "Loki query failed"}},
)


def _window(start: Optional[int], end: Optional[int]):
    try:
        return resolve_window(start, end, current_ms=now_ms())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/labels/{name}/values")
async def label_values(name: str, loki: LokiClient = Depends(get_loki_client)):
    """Distinct values of one label, e.g. which service names are logging."""
    return await loki.label_values(name)


@router.get("/series")
async def series(
    start: Optional[int] = Query(None, description="epoch ms, default end - 5m"),
    end: Optional[int] = Query(None, description="epoch ms, default now"),
    match: List[str] = Query(default=[]),
    loki: LokiClient = Depends(get_loki_client),
):
    start_ms, end_ms = _window(start, end)
    return await loki.series(start_ms, end_ms, match)


@router.get("/query")
async def instant_query(
    query: str,
    time: Optional[int] = Query(None, description="epoch ms evaluation time"),
    loki: LokiClient = Depends(get_loki_client),
):
    return await loki.query(query, time)


@router.get("/query_range")
async def range_query(
    query: str,
    start: Optional[int] = Query(None, description="epoch ms, default end - 5m"),
    end: Optional[int] = Query(None, description="epoch ms, default now"),
    limit: int = Query(DEFAULT_QUERY_LIMIT, ge=1),
    direction: Literal["forward", "backward"] = "backward",
    loki: LokiClient = Depends(get_loki_client),
):
    """Log lines for `query`; stream timestamps in the response are epoch ms."""
    start_ms, end_ms = _window(start, end)
    return await loki.query_range(query, start_ms, end_ms, limit, direction)
