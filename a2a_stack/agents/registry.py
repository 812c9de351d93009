import json
import logging
import uuid
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from a2a_stack.config.stack_state import StackState
from a2a_stack.errors import AgentRegistryUnreadable, MissingAgentConfig

logger = logging.getLogger(__name__)


class AgentRegistration(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    agent_id: str = Field(alias="agentId")
    agent_name: str = Field(alias="agentName", min_length=1)
    role: str = "Agent"
    connected_agents: List[str] = Field(default_factory=list, alias="connectedAgents")
    methods: List[str] = Field(default_factory=list)


class AgentConfig(AgentRegistration):
    """Per-project `.a2a.config.json`: the registration plus where to send telemetry."""

    endpoint: str
    grpc_endpoint: str = Field(alias="grpcEndpoint")
    token: str
    metric_port: int = Field(alias="metricPort")

    @classmethod
    def for_agent(
        cls,
        state: StackState,
        agent_name: str,
        role: Optional[str] = None,
        connected_agents: Optional[List[str]] = None,
        methods: Optional[List[str]] = None,
    ) -> "AgentConfig":
        return cls(
            agent_id=str(uuid.uuid4()),
            agent_name=agent_name,
            role=role or "Agent",
            connected_agents=connected_agents or [],
            methods=methods or [],
            endpoint=state.collector.endpoint_http,
            grpc_endpoint=state.collector.endpoint_grpc,
            token=state.collector.token,
            metric_port=state.ports.prometheus_exporter,
        )

    def registration(self) -> AgentRegistration:
        return AgentRegistration(**self.model_dump(include=set(AgentRegistration.model_fields)))

    def save(self, path: Path) -> None:
        Path(path).write_text(json.dumps(self.model_dump(by_alias=True), indent=2) + "\n", encoding="utf-8")

    @classmethod
    def load(cls, path: Path) -> "AgentConfig":
        path = Path(path)
        if not path.is_file():
            raise MissingAgentConfig(path)
        try:
            return cls.model_validate(json.loads(path.read_text(encoding="utf-8")))
        except (ValueError, ValidationError) as e:
            raise MissingAgentConfig(path) from e


def split_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class AgentRegistry:
    """The global `agents.json` list, unique by agent name.

    `load_all` is forgiving for read-only callers; `upsert` refuses to rewrite
    a file it cannot fully read.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load_all(self) -> List[AgentRegistration]:
        if not self.path.is_file():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except ValueError as e:
            logger.warning("event=agent_registry_unreadable path=%s error=%s", self.path, e)
            return []
        agents = []
        for entry in raw if isinstance(raw, list) else []:
            try:
                agents.append(AgentRegistration.model_validate(entry))
            except ValidationError as e:
                logger.warning("event=agent_registration_skipped path=%s error_count=%s", self.path, e.error_count())
        return agents

    def _load_strict(self) -> List[AgentRegistration]:
        if not self.path.is_file():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except ValueError as e:
            logger.error("event=agent_registry_unreadable path=%s error=%s", self.path, e)
            raise AgentRegistryUnreadable(self.path, f"malformed JSON: {e}") from e
        if not isinstance(raw, list):
            raise AgentRegistryUnreadable(self.path, "expected a JSON list")
        try:
            return [AgentRegistration.model_validate(entry) for entry in raw]
        except ValidationError as e:
            raise AgentRegistryUnreadable(self.path, f"{e.error_count()} invalid registration field(s)") from e

    def upsert(self, registration: AgentRegistration) -> List[AgentRegistration]:
        agents = [a for a in self._load_strict() if a.agent_name != registration.agent_name]
        agents.append(registration)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps([a.model_dump(by_alias=True) for a in agents], indent=2) + "\n",
            encoding="utf-8",
        )
        logger.info("event=agent_registered name=%s total=%s", registration.agent_name, len(agents))
        return agents
