import shutil

import pytest

from a2a_stack.config import settings
from a2a_stack.config.stack_state import StackStateRepository
from a2a_stack.observability.generators.synthesizer import WriteMode
from a2a_stack.orchestrator.base.compose_driver import ComposeDriver
from a2a_stack.orchestrator.lifecycle import StackLifecycleManager
from a2a_stack.orchestrator.provisioning import provision

pytestmark = pytest.mark.skipif(shutil.which("docker") is None, reason="docker not installed")


class TestComposeStack:

    @pytest.fixture
    def provisioned(self, tmp_path):
        return provision(tmp_path, mode=WriteMode.FORCE, project_name="a2a-itest")

    @pytest.mark.integration
    def test_start_reconcile_stop(self, provisioned):
        manager = StackLifecycleManager(ComposeDriver(provisioned.manifest_path, project_name="a2a-itest"))
        try:
            manager.start()
            result = manager.reconcile(provisioned.state)

            assert result.complete
            assert result.state.assignments() == provisioned.assignments
            StackStateRepository(settings.state_path(provisioned.home)).save(result.state)
        finally:
            manager.stop()
