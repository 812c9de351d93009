from pathlib import Path

from a2a_stack.agents.registry import AgentConfig
from a2a_stack.config import settings
from a2a_stack.orchestrator.base.logql_logger import LogQLLogger


def render_otel_readme(config: AgentConfig) -> str:
    connected = ", ".join(config.connected_agents) or "None"
    methods = ", ".join(config.methods) or "None"
    return f"""# A2A Telemetry Setup for {config.agent_name}

**Role:** {config.role or "N/A"}
**Connected Agents:** {connected}
**Methods:** {methods}

This agent is configured with `{settings.AGENT_CONFIG_FILE_NAME}`.
Telemetry data will be sent to:

- Collector (HTTP): `{config.endpoint}`
- Collector (gRPC): `{config.grpc_endpoint}`
- Metrics (Prometheus exporter): `http://localhost:{config.metric_port}/metrics`

Requests to the collector carry `Authorization: Bearer <token>` using the token
stored in `{settings.AGENT_CONFIG_FILE_NAME}`.

---

## Python

Install:
```bash
pip install a2a-stack
```

Use in your app:
```python
import logging
from a2a_stack.sdk import start_telemetry

telemetry = start_telemetry("./{settings.AGENT_CONFIG_FILE_NAME}")
logging.getLogger(__name__).info("agent started")

# on shutdown
telemetry.shutdown()
```

Logs reach Loki labelled `service_name="{config.agent_name}"`, which is what the
dashboard queries.
"""


def inject_otel(project_dir: Path) -> Path:
    """Writes the telemetry README next to the project's agent config."""
    log = LogQLLogger(__name__)
    project_dir = Path(project_dir)
    config = AgentConfig.load(project_dir / settings.AGENT_CONFIG_FILE_NAME)
    readme_path = project_dir / settings.OTEL_README_FILE_NAME
    readme_path.write_text(render_otel_readme(config), encoding="utf-8")
    log.info("otel_readme_written", path=str(readme_path), agent=config.agent_name)
    return readme_path
