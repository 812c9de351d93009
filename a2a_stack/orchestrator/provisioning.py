import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import yaml

from a2a_stack.config import constants, settings
from a2a_stack.config.constants import SERVICE_SPECS, ServiceSpec
from a2a_stack.config.stack_state import StackState, StackStateRepository
from a2a_stack.errors import ManifestDecodeError, MissingPersistedState
from a2a_stack.observability.generators.compose_manifest import recover_assignments
from a2a_stack.observability.generators.synthesizer import WriteMode, synthesize, write_documents
from a2a_stack.orchestrator.base.logql_logger import LogQLLogger, trace_operation
from a2a_stack.orchestrator.base.port_manager import PortAllocator


@dataclass
class ProvisionResult:
    state: StackState
    assignments: Dict[str, int]
    written: List[Path]
    home: Path
    kept: List[Path] = field(default_factory=list)

    @property
    def manifest_path(self) -> Path:
        return self.home / constants.COMPOSE_MANIFEST_FILE


def _previous_state(home: Path) -> Optional[StackState]:
    try:
        return StackStateRepository(settings.state_path(home)).load()
    except MissingPersistedState:
        return None


def kept_manifest_ports(home: Path, specs: Sequence[ServiceSpec]) -> Dict[str, int]:
    """Ports a kept manifest publishes, plus host-only roles from the previous state."""
    manifest_path = home / constants.COMPOSE_MANIFEST_FILE
    try:
        manifest = yaml.safe_load(manifest_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ManifestDecodeError(manifest_path, str(e).splitlines()[0]) from e

    reserved = recover_assignments(specs, manifest)
    previous = _previous_state(home)
    if reserved and previous is not None:
        for spec in specs:
            if not spec.exposed and spec.name not in reserved:
                try:
                    reserved[spec.name] = previous.port_for(spec.name)
                except KeyError:
                    continue
    return reserved


@trace_operation("provision_stack")
def provision(
    home: Path,
    mode: WriteMode = WriteMode.PRESERVE,
    allocator: Optional[PortAllocator] = None,
    specs: Sequence[ServiceSpec] = SERVICE_SPECS,
    token: Optional[str] = None,
    project_name: str = settings.PROJECT_NAME,
) -> ProvisionResult:
    """allocate -> synthesize -> write documents -> write state.

    In PRESERVE mode a manifest that is already on disk keeps its host ports,
    so the state file never points at ports compose does not publish.
    PortExhausted propagates before anything touches the disk.
    """
    log = LogQLLogger(__name__, home=str(home))
    home = Path(home)

    reserved: Dict[str, int] = {}
    if mode is WriteMode.PRESERVE and (home / constants.COMPOSE_MANIFEST_FILE).is_file():
        reserved = kept_manifest_ports(home, specs)
        if reserved:
            log.info("manifest_ports_kept", roles=len(reserved))

    allocator = allocator or PortAllocator()
    assignments = allocator.allocate_specs(specs, reserved=reserved)
    documents = synthesize(specs, assignments, project_name=project_name)

    if token is None and reserved:
        previous = _previous_state(home)
        token = previous.collector.token if previous is not None else None

    written = write_documents(documents, home, mode)
    kept = [home / name for name in documents.by_file_name() if home / name not in written]
    state = StackState.from_assignments(assignments, token or str(uuid.uuid4()))
    StackStateRepository(settings.state_path(home)).save(state)

    log.info("stack_provisioned", documents_written=len(written), documents_kept=len(kept), mode=mode.value)
    return ProvisionResult(state=state, assignments=assignments, written=written, home=home, kept=kept)
