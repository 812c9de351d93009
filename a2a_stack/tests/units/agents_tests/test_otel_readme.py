"""
Unit tests for the telemetry setup README
"""

import pytest

from a2a_stack.agents.otel_readme import inject_otel, render_otel_readme
from a2a_stack.agents.registry import AgentConfig
from a2a_stack.config.constants import SERVICE_SPECS
from a2a_stack.config.stack_state import StackState
from a2a_stack.errors import MissingAgentConfig


@pytest.fixture
def config():
    state = StackState.from_assignments({s.name: s.preferred_port for s in SERVICE_SPECS}, token="s3cr3t-value")
    return AgentConfig.for_agent(state, "planner", role="Planner", connected_agents=["critic", "executor"])


def test_render_mentions_endpoints(config):
    readme = render_otel_readme(config)

    assert readme.startswith("# A2A Telemetry Setup for planner")
    assert "**Connected Agents:** critic, executor" in readme
    assert "**Methods:** None" in readme
    assert "`http://localhost:4318/v1/traces`" in readme
    assert "http://localhost:9464/metrics" in readme
    assert 'service_name="planner"' in readme


def test_token_not_written(config):
    assert "s3cr3t-value" not in render_otel_readme(config)


def test_inject_writes_readme(tmp_path, config):
    config.save(tmp_path / ".a2a.config.json")

    path = inject_otel(tmp_path)

    assert path == tmp_path / "a2a.README.md"
    assert path.read_text() == render_otel_readme(config)


def test_inject_requires_link(tmp_path):
    with pytest.raises(MissingAgentConfig):
        inject_otel(tmp_path)
    assert not (tmp_path / "a2a.README.md").exists()
