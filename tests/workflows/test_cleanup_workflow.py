"""Tests for the hidden ``internal.cleanup`` workflow."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from interceptca.core.types import CaState
from interceptca.workflows.cleanup import WORKFLOWID_GLOBAL_CLEANUP, init_cleanup
from interceptca.workflows.engine import WorkflowEngine, WorkflowError


@pytest.fixture()
def engine(config, logger) -> WorkflowEngine:
    return WorkflowEngine(config, logger)


class TestRegistration:
    def test_identifier(self):
        assert str(WORKFLOWID_GLOBAL_CLEANUP) == "flw://internal.cleanup"

    def test_registered_hidden_without_options(self, engine, manager):
        entry = init_cleanup(engine, manager)

        assert entry.identifier == WORKFLOWID_GLOBAL_CLEANUP
        assert entry.visible is False
        assert len(entry.options) == 0
        assert WORKFLOWID_GLOBAL_CLEANUP not in engine.visible_workflows()

    def test_register_twice_fails(self, engine, manager):
        init_cleanup(engine, manager)
        with pytest.raises(WorkflowError):
            init_cleanup(engine, manager)


class TestInvocation:
    def test_ca_cleanup_runs_before_tempdir(self, engine, config):
        order: list[str] = []
        authority = MagicMock()
        authority.cleanup.side_effect = lambda lg: order.append("ca")
        init_cleanup(engine, authority)

        with patch(
            "interceptca.workflows.cleanup.cleanup_temp_directory",
            side_effect=lambda cfg, lg, metrics=None: order.append("tempdir"),
        ) as reaper:
            outputs = engine.invoke(WORKFLOWID_GLOBAL_CLEANUP, ["ignored"])

        assert outputs == []
        assert order == ["ca", "tempdir"]
        assert reaper.call_args.args[0] is config

    def test_removes_cert_and_temp_directory(self, engine, manager, config, logger, tmp_dir):
        init_cleanup(engine, manager)
        record = manager.get_or_create(config, logger)
        (tmp_dir / "scratch.txt").write_text("x")

        assert engine.invoke(WORKFLOWID_GLOBAL_CLEANUP) == []

        assert not Path(record.cert_file).exists()
        assert not tmp_dir.exists()
        assert manager.state is CaState.ABSENT

    def test_failures_do_not_escape(self, engine, manager, config, logger, metrics):
        init_cleanup(engine, manager, metrics=metrics)
        record = manager.get_or_create(config, logger)
        os.remove(record.cert_file)

        with patch(
            "interceptca.cleanup.tempdir.shutil.rmtree",
            side_effect=PermissionError("locked"),
        ):
            assert engine.invoke(WORKFLOWID_GLOBAL_CLEANUP) == []

        assert manager.state is CaState.ABSENT
        assert metrics.total("cleanup_failures_total") == 2

    def test_repeat_invocation_is_harmless(self, engine, manager, config, logger):
        init_cleanup(engine, manager)
        manager.get_or_create(config, logger)

        engine.invoke(WORKFLOWID_GLOBAL_CLEANUP)
        assert engine.invoke(WORKFLOWID_GLOBAL_CLEANUP) == []
