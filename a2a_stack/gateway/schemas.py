from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from a2a_stack.agents.registry import AgentRegistration


class TelemetryUrls(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prometheus_url: str = Field(alias="prometheusUrl")
    loki_url: str = Field(alias="lokiUrl")
    tempo_url: str = Field(alias="tempoUrl")
    collector_http: str = Field(alias="collectorHttp")
    collector_grpc: str = Field(alias="collectorGrpc")


class ConfigSummary(BaseModel):
    telemetry: TelemetryUrls
    agents: List[AgentRegistration] = []


class AgentStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    service_name: str = Field(alias="serviceName")
    online: bool
    last_ts: Optional[int] = Field(default=None, alias="lastTs")
    last_line: str = Field(default="", alias="lastLine")
    last_to: str = Field(default="", alias="lastTo")
    error_count: int = Field(default=0, alias="errorCount")
    line_count: int = Field(default=0, alias="lineCount")


class ErrorDetail(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: str
    message: str
    upstream_status: Optional[int] = Field(default=None, alias="upstreamStatus")


class ErrorResponse(BaseModel):
    error: ErrorDetail
