from enum import Enum
from typing import Optional


class A2AError(Exception):
    """Base class for every error the stack raises on purpose."""


class PortExhausted(A2AError):
    def __init__(self, preferred_start: int, scan_window: int):
        self.preferred_start = preferred_start
        self.scan_window = scan_window
        super().__init__(
            f"No free port found in [{preferred_start}, {preferred_start + scan_window}). "
            f"Free a port in that range or raise A2A_PORT_SCAN_WINDOW."
        )


class EngineUnavailable(A2AError):
    """docker compose is missing, timed out or rejected the manifest."""


class ReconciliationMiss(A2AError):
    """A single port query against the engine failed. Never fatal."""

    def __init__(self, role: str, service: str, container_port: int, reason: str):
        self.role = role
        self.service = service
        self.container_port = container_port
        self.reason = reason
        super().__init__(f"Could not reconcile {role} ({service}:{container_port}): {reason}")


class MissingPersistedState(A2AError):
    def __init__(self, path, reason: str = "not found"):
        self.path = path
        super().__init__(f"Stack state at {path} is {reason}. Run `a2a init` first.")


class StackStateDecodeError(MissingPersistedState):
    def __init__(self, path, detail: str):
        self.detail = detail
        super().__init__(path, reason=f"invalid ({detail})")


class MissingAgentConfig(A2AError):
    def __init__(self, path):
        self.path = path
        super().__init__(f"No agent config found at {path}. Run `a2a link` first.")


class ManifestDecodeError(A2AError):
    def __init__(self, path, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"Existing manifest at {path} is not valid YAML ({detail}). Fix it or rerun with --force.")


class AgentRegistryUnreadable(A2AError):
    def __init__(self, path, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"Agent registry at {path} is unreadable ({detail}). Fix or remove it, then link again.")


class ProxyErrorKind(str, Enum):
    UPSTREAM_UNREACHABLE = "upstream_unreachable"
    UPSTREAM_BAD_STATUS = "upstream_bad_status"
    DECODE_ERROR = "decode_error"


class UpstreamQueryFailure(A2AError):
    """A call to the log backend failed inside the query proxy."""


class ProxyError(UpstreamQueryFailure):
    def __init__(self, kind: ProxyErrorKind, message: str, upstream_status: Optional[int] = None):
        self.kind = kind
        self.message = message
        self.upstream_status = upstream_status
        super().__init__(f"{kind.value}: {message}")

    def to_body(self) -> dict:
        return {
            "error": {
                "kind": self.kind.value,
                "message": self.message,
                "upstreamStatus": self.upstream_status,
            }
        }
