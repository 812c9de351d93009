import time
from urllib.parse import quote
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import httpx

from a2a_stack.config import settings
from a2a_stack.errors import ProxyError, ProxyErrorKind
from a2a_stack.gateway.timestamps import ms_to_ns, ns_to_ms, seconds_to_ms
from a2a_stack.orchestrator.base.logql_logger import LogQLLogger

DEFAULT_SERIES_MATCH = '{service_name=~".+"}'

Params = Union[Dict[str, Any], List[Tuple[str, Any]]]


def _convert_sample(sample: List[Any]) -> List[Any]:
    return [seconds_to_ms(sample[0]), *sample[1:]]


def convert_result_timestamps(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Rewrites Loki result timestamps into epoch ms, keeping the envelope intact.

    streams: `values` entries `[ns_string, line, ...]` -> `[ms, line, ...]`
    matrix/vector: sample seconds -> ms
    """
    data = payload.get("data")
    if not isinstance(data, dict) or not isinstance(data.get("result"), list):
        return payload

    result_type = data.get("resultType")
    converted = []
    for entry in data["result"]:
        entry = dict(entry)
        if result_type == "streams":
            entry["values"] = [[ns_to_ms(v[0]), *v[1:]] for v in entry.get("values", [])]
        elif result_type == "matrix":
            entry["values"] = [_convert_sample(v) for v in entry.get("values", [])]
        elif result_type == "vector" and "value" in entry:
            entry["value"] = _convert_sample(entry["value"])
        converted.append(entry)
    return {**payload, "data": {**data, "result": converted}}


class LokiClient:
    """Async client for Loki's query API. Every failure surfaces as ProxyError."""

    def __init__(
        self,
        base_url: str,
        timeout: float = settings.UPSTREAM_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self.log = LogQLLogger(__name__, upstream=self.base_url)

    async def _get(self, path: str, params: Optional[Params] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        start_time = time.time()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, params=params)
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as e:
            self.log.error("loki_unreachable", error=e, path=path)
            raise ProxyError(ProxyErrorKind.UPSTREAM_UNREACHABLE, f"Loki at {self.base_url} unreachable: {e}") from e

        duration = int((time.time() - start_time) * 1000)
        if response.status_code >= 400:
            self.log.error("loki_bad_status", path=path, status=response.status_code, duration_ms=duration)
            raise ProxyError(
                ProxyErrorKind.UPSTREAM_BAD_STATUS,
                f"Loki returned HTTP {response.status_code}: {response.text.strip()[:300]}",
                upstream_status=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            self.log.error("loki_decode_failed", error=e, path=path)
            raise ProxyError(ProxyErrorKind.DECODE_ERROR, "Loki response is not valid JSON",
                             upstream_status=response.status_code) from e
        if not isinstance(payload, dict):
            raise ProxyError(ProxyErrorKind.DECODE_ERROR, "Loki response is not a JSON object",
                             upstream_status=response.status_code)

        self.log.debug("loki_query_ok", path=path, status=response.status_code, duration_ms=duration)
        return payload

    def _converted(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return convert_result_timestamps(payload)
        except (TypeError, ValueError, KeyError, IndexError) as e:
            self.log.error("loki_timestamp_conversion_failed", error=e)
            raise ProxyError(ProxyErrorKind.DECODE_ERROR, f"Unexpected Loki result shape: {e}") from e

    async def label_values(self, name: str) -> Dict[str, Any]:
        return await self._get(f"/loki/api/v1/label/{quote(name, safe='')}/values")

    async def series(self, start_ms: int, end_ms: int, matches: Sequence[str] = ()) -> Dict[str, Any]:
        params: List[Tuple[str, Any]] = [("start", ms_to_ns(start_ms)), ("end", ms_to_ns(end_ms))]
        params.extend(("match[]", m) for m in (matches or [DEFAULT_SERIES_MATCH]))
        return await self._get("/loki/api/v1/series", params=params)

    async def query(self, query: str, time_ms: Optional[int] = None) -> Dict[str, Any]:
        params: Dict[str, Any] = {"query": query}
        if time_ms is not None:
            params["time"] = ms_to_ns(time_ms)
        return self._converted(await self._get("/loki/api/v1/query", params=params))

    async def query_range(
        self,
        query: str,
        start_ms: int,
        end_ms: int,
        limit: int,
        direction: str,
    ) -> Dict[str, Any]:
        params = {
            "query": query,
            "start": ms_to_ns(start_ms),
            "end": ms_to_ns(end_ms),
            "limit": limit,
            "direction": direction,
        }
        return self._converted(await self._get("/loki/api/v1/query_range", params=params))
