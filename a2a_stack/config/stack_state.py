"""Persisted stack state: the ports, collector endpoints and token of the running stack.

The state file is rewritten wholesale by `a2a init` and patched by reconciliation
in `a2a start-dashboard`. There is no file locking; two provisioning runs against
the same directory race and the last writer wins.
"""

import json
import logging
from pathlib import Path
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from a2a_stack.config import constants
from a2a_stack.errors import MissingPersistedState, StackStateDecodeError

logger = logging.getLogger(__name__)


def collector_http_endpoint(port: int) -> str:
    return f"http://localhost:{port}{constants.OTLP_TRACES_PATH}"


def collector_grpc_endpoint(port: int) -> str:
    return f"http://localhost:{port}"


def port_from_endpoint(endpoint: str) -> int:
    authority = endpoint.split("://", 1)[-1].split("/", 1)[0]
    return int(authority.rsplit(":", 1)[1])


class CollectorState(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    endpoint_http: str = Field(alias="endpointHttp")
    endpoint_grpc: str = Field(alias="endpointGrpc")
    token: str

    @property
    def http_port(self) -> int:
        return port_from_endpoint(self.endpoint_http)

    @property
    def grpc_port(self) -> int:
        return port_from_endpoint(self.endpoint_grpc)


class PortsState(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    prometheus: int = Field(ge=1, le=65535)
    loki: int = Field(ge=1, le=65535)
    tempo_http: int = Field(alias="tempoHttp", ge=1, le=65535)
    tempo_grpc: int = Field(alias="tempoGrpc", ge=1, le=65535)
    prometheus_exporter: int = Field(alias="prometheusExporter", ge=1, le=65535)
    dashboard: int = Field(ge=1, le=65535)


# ServiceSpec name -> PortsState attribute. Collector ports live in the endpoints.
PORT_FIELDS: Dict[str, str] = {
    constants.PROMETHEUS: "prometheus",
    constants.LOKI: "loki",
    constants.TEMPO_HTTP: "tempo_http",
    constants.TEMPO_GRPC: "tempo_grpc",
    constants.PROMETHEUS_EXPORTER: "prometheus_exporter",
    constants.DASHBOARD: "dashboard",
}


class StackState(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    collector: CollectorState
    ports: PortsState

    @classmethod
    def from_assignments(cls, assignments: Dict[str, int], token: str) -> "StackState":
        return cls(
            collector=CollectorState(
                endpoint_http=collector_http_endpoint(assignments[constants.COLLECTOR_HTTP]),
                endpoint_grpc=collector_grpc_endpoint(assignments[constants.COLLECTOR_GRPC]),
                token=token,
            ),
            ports=PortsState(**{field: assignments[name] for name, field in PORT_FIELDS.items()}),
        )

    def port_for(self, name: str) -> int:
        if name == constants.COLLECTOR_HTTP:
            return self.collector.http_port
        if name == constants.COLLECTOR_GRPC:
            return self.collector.grpc_port
        return getattr(self.ports, PORT_FIELDS[name])

    def assignments(self) -> Dict[str, int]:
        return {spec.name: self.port_for(spec.name) for spec in constants.SERVICE_SPECS}

    def with_port(self, name: str, port: int) -> "StackState":
        """Returns a copy with one role moved; collector endpoints are rebuilt, not patched."""
        if name == constants.COLLECTOR_HTTP:
            collector = self.collector.model_copy(update={"endpoint_http": collector_http_endpoint(port)})
            return self.model_copy(update={"collector": collector})
        if name == constants.COLLECTOR_GRPC:
            collector = self.collector.model_copy(update={"endpoint_grpc": collector_grpc_endpoint(port)})
            return self.model_copy(update={"collector": collector})
        ports = self.ports.model_copy(update={PORT_FIELDS[name]: port})
        return self.model_copy(update={"ports": ports})

    def to_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True), indent=2) + "\n"


class StackStateRepository:
    def __init__(self, path: Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> StackState:
        if not self.path.is_file():
            logger.error("event=stack_state_missing path=%s", self.path)
            raise MissingPersistedState(self.path)
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            state = StackState.model_validate(raw)
        except json.JSONDecodeError as e:
            raise StackStateDecodeError(self.path, f"malformed JSON: {e.msg}") from e
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise StackStateDecodeError(self.path, f"bad fields: {fields}") from e
        logger.debug("event=stack_state_loaded path=%s", self.path)
        return state

    def save(self, state: StackState) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(state.to_json(), encoding="utf-8")
        tmp.replace(self.path)
        logger.info("event=stack_state_saved path=%s", self.path)
