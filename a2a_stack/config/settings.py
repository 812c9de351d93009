import os
from pathlib import Path

A2A_HOME = Path(os.getenv("A2A_HOME", str(Path.home() / ".a2a"))).expanduser()
PROJECT_NAME = os.getenv("A2A_PROJECT_NAME", "a2a")
COMPOSE_COMMAND = os.getenv("A2A_COMPOSE_COMMAND", "docker compose")
ENGINE_TIMEOUT = float(os.getenv("A2A_ENGINE_TIMEOUT", "120"))
PORT_QUERY_TIMEOUT = float(os.getenv("A2A_PORT_QUERY_TIMEOUT", "10"))
UPSTREAM_TIMEOUT = float(os.getenv("A2A_UPSTREAM_TIMEOUT", "10"))
PORT_SCAN_WINDOW = int(os.getenv("A2A_PORT_SCAN_WINDOW", "100"))
PORT_PROBE_HOST = os.getenv("A2A_PORT_PROBE_HOST", "127.0.0.1")
DASHBOARD_HOST = os.getenv("A2A_DASHBOARD_HOST", "127.0.0.1")
DASHBOARD_STATIC_DIR = os.getenv("A2A_DASHBOARD_STATIC_DIR", "")
LOG_LEVEL = os.getenv("A2A_LOG_LEVEL", "INFO")

STATE_FILE_NAME = "config.json"
AGENTS_FILE_NAME = "agents.json"
AGENT_CONFIG_FILE_NAME = ".a2a.config.json"
OTEL_README_FILE_NAME = "a2a.README.md"


def state_path(home: Path = A2A_HOME) -> Path:
    return Path(home) / STATE_FILE_NAME


def agents_path(home: Path = A2A_HOME) -> Path:
    return Path(home) / AGENTS_FILE_NAME
