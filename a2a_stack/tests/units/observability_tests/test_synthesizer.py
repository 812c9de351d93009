"""
Unit tests for config synthesis and document writing
"""

import pytest
import yaml

from a2a_stack.config import constants
from a2a_stack.config.constants import SERVICE_SPECS, ServiceSpec
from a2a_stack.observability.generators.synthesizer import WriteMode, synthesize, write_documents

# Every host port deliberately far from any container port
BUMPED = {spec.name: 21000 + i for i, spec in enumerate(SERVICE_SPECS)}


class TestSynthesize:

    def test_deterministic(self):
        assert synthesize(SERVICE_SPECS, BUMPED, "a2a") == synthesize(SERVICE_SPECS, BUMPED, "a2a")

    def test_host_ports_only_in_manifest(self):
        docs = synthesize(SERVICE_SPECS, BUMPED, "a2a")

        for file_name, content in docs.internal_documents().items():
            for port in BUMPED.values():
                assert str(port) not in content, f"{port} leaked into {file_name}"

    def test_internal_documents_unchanged_by_assignments(self):
        defaults = {spec.name: spec.preferred_port for spec in SERVICE_SPECS}
        assert (synthesize(SERVICE_SPECS, defaults, "a2a").internal_documents()
                == synthesize(SERVICE_SPECS, BUMPED, "a2a").internal_documents())

    def test_manifest_port_pairs(self):
        manifest = yaml.safe_load(synthesize(SERVICE_SPECS, BUMPED, "a2a").orchestration_manifest)
        services = manifest["services"]

        assert services["otel-collector"]["ports"] == ["21000:4318", "21001:4317", "21002:9464"]
        assert services["prometheus"]["ports"] == ["21003:9090"]
        assert services["loki"]["ports"] == ["21004:3100"]
        assert services["tempo"]["ports"] == ["21005:3200", "21007:9095"]
        assert manifest["name"] == "a2a"

    def test_dashboard_port_not_published(self):
        manifest = synthesize(SERVICE_SPECS, BUMPED, "a2a").orchestration_manifest
        assert str(BUMPED[constants.DASHBOARD]) not in manifest

    def test_documents_are_valid_yaml(self):
        for content in synthesize(SERVICE_SPECS, BUMPED, "a2a").by_file_name().values():
            assert isinstance(yaml.safe_load(content), dict)

    def test_missing_assignment(self):
        assignments = dict(BUMPED)
        del assignments[constants.LOKI]
        with pytest.raises(ValueError, match="loki"):
            synthesize(SERVICE_SPECS, assignments, "a2a")

    def test_missing_dashboard_assignment_allowed(self):
        assignments = dict(BUMPED)
        del assignments[constants.DASHBOARD]
        synthesize(SERVICE_SPECS, assignments, "a2a")

    def test_colliding_host_ports(self):
        assignments = dict(BUMPED, **{constants.LOKI: BUMPED[constants.PROMETHEUS]})
        with pytest.raises(ValueError, match="distinct"):
            synthesize(SERVICE_SPECS, assignments, "a2a")

    def test_duplicate_spec_names(self):
        specs = list(SERVICE_SPECS) + [ServiceSpec(constants.LOKI, "loki", 3100, 3100)]
        with pytest.raises(ValueError, match="Duplicate"):
            synthesize(specs, BUMPED, "a2a")


class TestWriteDocuments:

    def test_writes_all_four(self, tmp_path):
        docs = synthesize(SERVICE_SPECS, BUMPED, "a2a")
        written = write_documents(docs, tmp_path / "out", WriteMode.PRESERVE)

        assert sorted(p.name for p in written) == sorted(docs.by_file_name())
        for path in written:
            assert path.read_text() == docs.by_file_name()[path.name]

    def test_preserve_skips_existing(self, tmp_path, caplog):
        (tmp_path / constants.TEMPO_CONFIG_FILE).write_text("custom: true\n")
        written = write_documents(synthesize(SERVICE_SPECS, BUMPED, "a2a"), tmp_path, WriteMode.PRESERVE)

        assert tmp_path / constants.TEMPO_CONFIG_FILE not in written
        assert (tmp_path / constants.TEMPO_CONFIG_FILE).read_text() == "custom: true\n"
        assert "document_preserved" in caplog.text

    def test_force_replaces_existing(self, tmp_path):
        (tmp_path / constants.TEMPO_CONFIG_FILE).write_text("custom: true\n")
        docs = synthesize(SERVICE_SPECS, BUMPED, "a2a")
        written = write_documents(docs, tmp_path, WriteMode.FORCE)

        assert tmp_path / constants.TEMPO_CONFIG_FILE in written
        assert (tmp_path / constants.TEMPO_CONFIG_FILE).read_text() == docs.trace_backend_config
