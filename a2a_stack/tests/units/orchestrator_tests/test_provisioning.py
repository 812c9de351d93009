"""
Unit tests for `provision`: allocate, synthesize, write documents and state
"""

import json

import pytest
import yaml

from a2a_stack.config import constants, settings
from a2a_stack.errors import ManifestDecodeError, PortExhausted
from a2a_stack.observability.generators.synthesizer import WriteMode
from a2a_stack.orchestrator.base.port_manager import PortAllocator
from a2a_stack.orchestrator.provisioning import provision

DOCUMENTS = [
    constants.COLLECTOR_CONFIG_FILE,
    constants.PROMETHEUS_CONFIG_FILE,
    constants.TEMPO_CONFIG_FILE,
    constants.COMPOSE_MANIFEST_FILE,
]


def allocator(*taken):
    return PortAllocator(probe=lambda port: port not in taken)


class TestProvision:

    def test_fresh_home(self, tmp_path):
        home = tmp_path / "home"
        result = provision(home, allocator=allocator(), token="tok", project_name="a2a")

        for name in DOCUMENTS:
            assert (home / name).is_file()
        assert len(result.written) == 4
        assert result.manifest_path == home / constants.COMPOSE_MANIFEST_FILE

        saved = json.loads(settings.state_path(home).read_text())
        assert saved["collector"] == {
            "endpointHttp": "http://localhost:4318/v1/traces",
            "endpointGrpc": "http://localhost:55680",
            "token": "tok",
        }
        assert saved["ports"]["tempoHttp"] == 3200
        assert saved["ports"]["dashboard"] == 4000

    def test_state_and_manifest_agree_on_bumped_ports(self, tmp_path):
        result = provision(tmp_path, allocator=allocator(3100, 4318), token="tok")

        assert result.state.ports.loki == 3101
        assert result.state.collector.endpoint_http == "http://localhost:4319/v1/traces"

        manifest = yaml.safe_load((tmp_path / constants.COMPOSE_MANIFEST_FILE).read_text())
        assert "3101:3100" in manifest["services"]["loki"]["ports"]
        assert "4319:4318" in manifest["services"]["otel-collector"]["ports"]

    def test_generates_token_when_none_given(self, tmp_path):
        first = provision(tmp_path / "a", allocator=allocator())
        second = provision(tmp_path / "b", allocator=allocator())
        assert first.state.collector.token
        assert first.state.collector.token != second.state.collector.token

    def test_exhaustion_writes_nothing(self, tmp_path):
        home = tmp_path / "home"
        with pytest.raises(PortExhausted):
            provision(home, allocator=PortAllocator(scan_window=3, probe=lambda port: False))
        assert not home.exists()

    def test_preserve_keeps_existing_documents(self, tmp_path):
        (tmp_path / constants.COMPOSE_MANIFEST_FILE).write_text("# hand edited\n")

        result = provision(tmp_path, mode=WriteMode.PRESERVE, allocator=allocator(), token="tok")

        assert (tmp_path / constants.COMPOSE_MANIFEST_FILE).read_text() == "# hand edited\n"
        assert tmp_path / constants.COMPOSE_MANIFEST_FILE not in result.written
        assert len(result.written) == 3
        assert result.kept == [tmp_path / constants.COMPOSE_MANIFEST_FILE]
        assert settings.state_path(tmp_path).is_file()

    def test_force_overwrites_documents(self, tmp_path):
        (tmp_path / constants.COMPOSE_MANIFEST_FILE).write_text("# hand edited\n")

        result = provision(tmp_path, mode=WriteMode.FORCE, allocator=allocator(), token="tok")

        assert len(result.written) == 4
        assert "services" in yaml.safe_load((tmp_path / constants.COMPOSE_MANIFEST_FILE).read_text())

    def test_state_file_always_rewritten(self, tmp_path):
        settings.state_path(tmp_path).write_text("{}")
        provision(tmp_path, allocator=allocator(), token="new")
        assert json.loads(settings.state_path(tmp_path).read_text())["collector"]["token"] == "new"

    def test_preserve_reuses_manifest_ports_while_stack_runs(self, tmp_path):
        first = provision(tmp_path, allocator=allocator(), token="tok")
        running = allocator(*first.assignments.values())

        second = provision(tmp_path, mode=WriteMode.PRESERVE, allocator=running)

        assert second.assignments == first.assignments
        assert second.state == first.state
        assert second.written == []
        manifest = yaml.safe_load((tmp_path / constants.COMPOSE_MANIFEST_FILE).read_text())
        assert "4318:4318" in manifest["services"]["otel-collector"]["ports"]
        assert second.state.collector.endpoint_http == "http://localhost:4318/v1/traces"
        assert second.state.ports.loki == 3100

    def test_preserve_reuses_bumped_manifest_ports(self, tmp_path):
        first = provision(tmp_path, allocator=allocator(3100), token="tok")
        assert first.state.ports.loki == 3101

        second = provision(tmp_path, allocator=allocator())

        assert second.state.ports.loki == 3101
        assert second.state.collector.token == "tok"

    def test_preserve_allocates_roles_missing_from_manifest(self, tmp_path):
        provision(tmp_path, allocator=allocator(), token="tok")
        path = tmp_path / constants.COMPOSE_MANIFEST_FILE
        manifest = yaml.safe_load(path.read_text())
        manifest["services"]["loki"]["ports"] = []
        path.write_text(yaml.safe_dump(manifest))

        result = provision(tmp_path, allocator=allocator(3100, 4318))

        assert result.state.ports.loki == 3101
        assert result.state.collector.endpoint_http == "http://localhost:4318/v1/traces"

    def test_preserve_rejects_malformed_manifest(self, tmp_path):
        (tmp_path / constants.COMPOSE_MANIFEST_FILE).write_text("services: [unclosed\n")

        with pytest.raises(ManifestDecodeError, match="--force"):
            provision(tmp_path, allocator=allocator())
        assert not settings.state_path(tmp_path).exists()

    def test_force_reallocates_despite_manifest(self, tmp_path):
        first = provision(tmp_path, allocator=allocator(), token="tok")

        second = provision(tmp_path, mode=WriteMode.FORCE, allocator=allocator(*first.assignments.values()))

        assert second.state.ports.loki == 3101
        manifest = yaml.safe_load((tmp_path / constants.COMPOSE_MANIFEST_FILE).read_text())
        assert manifest["services"]["loki"]["ports"] == ["3101:3100"]
