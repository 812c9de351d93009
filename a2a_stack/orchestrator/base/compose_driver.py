import shlex
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from a2a_stack.config import settings
from a2a_stack.errors import EngineUnavailable
from a2a_stack.orchestrator.base.logql_logger import LogQLLogger


@dataclass(frozen=True)
class CommandResult:
    args: List[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


class EngineCommandTimeout(EngineUnavailable):
    pass


def run_command(command: Sequence[str], timeout: float, cwd: Optional[Path] = None) -> CommandResult:
    """Runs one blocking engine command. Missing binary and timeouts raise EngineUnavailable."""
    log = LogQLLogger(__name__)
    cmd_str = " ".join(command)
    start_time = time.time()
    log.info("command_execute", command=cmd_str, timeout=timeout)
    try:
        proc = subprocess.run(
            list(command),
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=str(cwd) if cwd else None,
            check=False,
        )
    except FileNotFoundError as e:
        log.error("command_binary_missing", error=e, command=cmd_str)
        raise EngineUnavailable(f"'{command[0]}' was not found on PATH; install Docker with the compose plugin") from e
    except subprocess.TimeoutExpired as e:
        log.error("command_timeout", command=cmd_str, timeout=timeout)
        raise EngineCommandTimeout(f"'{cmd_str}' did not finish within {timeout}s") from e

    result = CommandResult(list(command), proc.returncode, proc.stdout or "", proc.stderr or "")
    duration = int((time.time() - start_time) * 1000)
    if result.success:
        log.info("command_result", command=cmd_str, returncode=result.returncode, duration_ms=duration)
    else:
        log.error("command_failed", command=cmd_str, returncode=result.returncode,
                  duration_ms=duration, stderr=result.stderr.strip()[:500])
    return result


def parse_published_port(output: str) -> Optional[int]:
    """Parses `docker compose port` output such as `0.0.0.0:4318` or `[::]:4318`."""
    for line in output.splitlines():
        line = line.strip()
        if not line or ":" not in line:
            continue
        candidate = line.rsplit(":", 1)[1]
        if candidate.isdigit() and int(candidate) > 0:
            return int(candidate)
    return None


class ComposeDriver:
    """Thin wrapper over the docker compose CLI for one manifest/project."""

    def __init__(
        self,
        manifest_path: Path,
        project_name: str = settings.PROJECT_NAME,
        compose_command: str = settings.COMPOSE_COMMAND,
        engine_timeout: float = settings.ENGINE_TIMEOUT,
        port_query_timeout: float = settings.PORT_QUERY_TIMEOUT,
    ):
        self.manifest_path = Path(manifest_path)
        self.project_name = project_name
        self.compose_command = shlex.split(compose_command)
        self.engine_timeout = engine_timeout
        self.port_query_timeout = port_query_timeout
        self.log = LogQLLogger(__name__, project=project_name)

    def _base_command(self) -> List[str]:
        return [*self.compose_command, "-f", str(self.manifest_path), "-p", self.project_name]

    def up(self) -> CommandResult:
        if not self.manifest_path.is_file():
            raise EngineUnavailable(f"Manifest {self.manifest_path} does not exist; run `a2a init` first")
        result = run_command([*self._base_command(), "up", "-d"], timeout=self.engine_timeout,
                             cwd=self.manifest_path.parent)
        if not result.success:
            raise EngineUnavailable(
                f"docker compose up failed with exit code {result.returncode}: {result.stderr.strip()[:500]}"
            )
        self.log.info("compose_up_complete", manifest=str(self.manifest_path))
        return result

    def down(self) -> CommandResult:
        result = run_command([*self._base_command(), "down"], timeout=self.engine_timeout,
                             cwd=self.manifest_path.parent)
        if not result.success:
            raise EngineUnavailable(
                f"docker compose down failed with exit code {result.returncode}: {result.stderr.strip()[:500]}"
            )
        self.log.info("compose_down_complete", manifest=str(self.manifest_path))
        return result

    def port(self, service: str, container_port: int) -> Optional[int]:
        """Host port currently published for `service:container_port`, or None if nothing is bound."""
        result = run_command(
            [*self._base_command(), "port", service, str(container_port)],
            timeout=self.port_query_timeout,
            cwd=self.manifest_path.parent,
        )
        if not result.success:
            raise EngineUnavailable(
                f"docker compose port {service} {container_port} exited {result.returncode}: "
                f"{result.stderr.strip()[:200]}"
            )
        return parse_published_port(result.stdout)
