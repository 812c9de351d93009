"""
Base engine helpers for the orchestrator: port allocation, the compose CLI
driver and LogQL-formatted logging.
"""

from .compose_driver import (
    CommandResult,
    ComposeDriver,
    EngineCommandTimeout,
)

from .logql_logger import (
    LogQLLogger,
    trace_operation,
)

from .port_manager import (
    PortAllocator,
    check_port_available,
)

__all__ = [
    "CommandResult",
    "ComposeDriver",
    "EngineCommandTimeout",
    "LogQLLogger",
    "trace_operation",
    "PortAllocator",
    "check_port_available",
]
