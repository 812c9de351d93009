"""
Unit tests for stack start/stop and port reconciliation
"""

import logging
from unittest.mock import MagicMock

import pytest

from a2a_stack.config import constants
from a2a_stack.config.constants import SERVICE_SPECS
from a2a_stack.config.stack_state import StackState, StackStateRepository
from a2a_stack.errors import EngineUnavailable
from a2a_stack.orchestrator.lifecycle import StackLifecycleManager, persist_best_effort

DEFAULTS = {spec.name: spec.preferred_port for spec in SERVICE_SPECS}


class FakeDriver:
    """Answers `port` from a table; values that are exceptions are raised."""

    def __init__(self, published):
        self.published = published
        self.calls = []

    def up(self):
        self.calls.append("up")

    def down(self):
        self.calls.append("down")

    def port(self, service, container_port):
        answer = self.published.get((service, container_port))
        if isinstance(answer, Exception):
            raise answer
        return answer


def published_defaults():
    return {
        (spec.service, spec.container_port): DEFAULTS[spec.name]
        for spec in SERVICE_SPECS if spec.exposed
    }


@pytest.fixture
def state():
    return StackState.from_assignments(DEFAULTS, token="tok")


class TestStartStop:

    def test_start_and_stop_delegate_to_driver(self):
        driver = FakeDriver({})
        manager = StackLifecycleManager(driver)
        manager.start()
        manager.stop()
        assert driver.calls == ["up", "down"]

    def test_start_propagates_engine_failure(self):
        driver = MagicMock()
        driver.up.side_effect = EngineUnavailable("docker is not running")
        with pytest.raises(EngineUnavailable):
            StackLifecycleManager(driver).start()


class TestReconcile:
    """Test patching state from the engine's published ports"""

    def test_no_drift(self, state):
        result = StackLifecycleManager(FakeDriver(published_defaults())).reconcile(state)

        assert result.complete
        assert result.state == state
        assert constants.DASHBOARD not in result.updated
        assert len(result.updated) == 7

    def test_drift_rewrites_collector_endpoints(self, state):
        driver = FakeDriver(published_defaults())
        driver.published[(constants.COLLECTOR_SERVICE, constants.OTLP_HTTP_PORT)] = 4400
        driver.published[(constants.COLLECTOR_SERVICE, constants.OTLP_GRPC_PORT)] = 55681

        result = StackLifecycleManager(driver).reconcile(state)

        assert result.state.collector.endpoint_http == "http://localhost:4400/v1/traces"
        assert result.state.collector.endpoint_grpc == "http://localhost:55681"
        assert result.state.collector.token == "tok"

    def test_failed_query_keeps_previous_port(self, state, caplog):
        """One failing role is a miss; every other role still updates"""
        caplog.set_level(logging.INFO)
        driver = FakeDriver(published_defaults())
        driver.published[(constants.LOKI_SERVICE, constants.LOKI_PORT)] = EngineUnavailable("timed out")
        driver.published[(constants.PROMETHEUS_SERVICE, constants.PROMETHEUS_PORT)] = 9091

        result = StackLifecycleManager(driver).reconcile(state)

        assert not result.complete
        assert [miss.role for miss in result.misses] == [constants.LOKI]
        assert result.state.ports.loki == 3100
        assert result.state.ports.prometheus == 9091
        assert constants.LOKI not in result.updated
        assert "reconciliation_miss" in caplog.text
        assert "timed out" in caplog.text

    def test_unpublished_port_is_a_miss(self, state):
        driver = FakeDriver(published_defaults())
        driver.published[(constants.TEMPO_SERVICE, constants.TEMPO_GRPC_PORT)] = None

        result = StackLifecycleManager(driver).reconcile(state)

        assert [miss.role for miss in result.misses] == [constants.TEMPO_GRPC]
        assert result.state.ports.tempo_grpc == 9095

    def test_every_query_failing_leaves_state_untouched(self, state):
        driver = MagicMock()
        driver.port.side_effect = EngineUnavailable("engine gone")

        result = StackLifecycleManager(driver).reconcile(state)

        assert result.state == state
        assert len(result.misses) == 7
        assert result.updated == []


class TestPersistBestEffort:

    def test_saves(self, tmp_path, state):
        repository = StackStateRepository(tmp_path / "config.json")
        assert persist_best_effort(repository, state) is True
        assert repository.load() == state

    def test_write_failure_is_reported_not_raised(self, state):
        repository = MagicMock()
        repository.save.side_effect = PermissionError("read-only")
        assert persist_best_effort(repository, state) is False
