"""Brings the compose stack up and learns which host ports it actually bound.

Allocation probes ports before docker compose runs, so a port can be taken in
between. After `start`, `reconcile` asks the engine for every published port and
patches the state. A failed query for one role keeps that role's previous value
and is reported as a ReconciliationMiss; it never aborts the command.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence

from a2a_stack.config.constants import SERVICE_SPECS, ServiceSpec
from a2a_stack.config.stack_state import StackState, StackStateRepository
from a2a_stack.errors import EngineUnavailable, ReconciliationMiss
from a2a_stack.orchestrator.base.logql_logger import LogQLLogger, trace_operation


class EngineDriver(Protocol):
    def up(self): ...

    def down(self): ...

    def port(self, service: str, container_port: int) -> Optional[int]: ...


@dataclass
class ReconcileResult:
    state: StackState
    misses: List[ReconciliationMiss] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.misses


class StackLifecycleManager:
    def __init__(self, driver: EngineDriver, specs: Sequence[ServiceSpec] = SERVICE_SPECS):
        self.driver = driver
        self.specs = [spec for spec in specs if spec.exposed]
        self.log = LogQLLogger(__name__)

    @trace_operation("stack_start")
    def start(self) -> None:
        self.driver.up()

    @trace_operation("stack_stop")
    def stop(self) -> None:
        self.driver.down()

    def reconcile(self, state: StackState) -> ReconcileResult:
        result = ReconcileResult(state=state)
        for spec in self.specs:
            try:
                port = self.driver.port(spec.service, spec.container_port)
            except EngineUnavailable as e:
                self._miss(result, spec, str(e))
                continue

            if port is None:
                self._miss(result, spec, "engine reported no published port")
                continue

            previous = result.state.port_for(spec.name)
            result.state = result.state.with_port(spec.name, port)
            result.updated.append(spec.name)
            if previous != port:
                self.log.info("port_drift_corrected", role=spec.name, previous=previous, actual=port)

        self.log.info("reconcile_complete", updated=len(result.updated), misses=len(result.misses))
        return result

    def _miss(self, result: ReconcileResult, spec: ServiceSpec, reason: str) -> None:
        miss = ReconciliationMiss(spec.name, spec.service, spec.container_port, reason)
        result.misses.append(miss)
        self.log.warning(
            "reconciliation_miss",
            role=spec.name,
            service=spec.service,
            container_port=spec.container_port,
            kept_port=result.state.port_for(spec.name),
            reason=reason,
        )


def persist_best_effort(repository: StackStateRepository, state: StackState) -> bool:
    log = LogQLLogger(__name__)
    try:
        repository.save(state)
    except OSError as e:
        log.warning("reconciled_state_not_saved", path=str(repository.path), error_msg=str(e))
        return False
    return True
