"""Tests for interceptca.workflows.engine."""

from __future__ import annotations

import logging

import pytest

from interceptca.workflows.engine import (
    ConfigurationOptions,
    WorkflowEngine,
    WorkflowError,
    WorkflowIdentifier,
    new_workflow_identifier,
)


@pytest.fixture()
def engine(config, logger) -> WorkflowEngine:
    return WorkflowEngine(config, logger)


def _echo(invocation, inputs):
    return [*inputs, "done"]


class TestIdentifier:
    def test_str(self):
        assert str(new_workflow_identifier("internal.cleanup")) == "flw://internal.cleanup"

    def test_equality(self):
        assert new_workflow_identifier("ca.path") == WorkflowIdentifier("ca.path")

    @pytest.mark.parametrize("name", ["", "Upper.case", "trailing.", ".leading", "a..b", "sp ace"])
    def test_invalid_names(self, name):
        with pytest.raises(WorkflowError, match="Invalid workflow name"):
            new_workflow_identifier(name)


class TestRegistration:
    def test_register_returns_visible_entry(self, engine):
        wid = new_workflow_identifier("ca.path")
        entry = engine.register(wid, ConfigurationOptions(), _echo)

        assert entry.identifier == wid
        assert entry.visible is True
        assert len(entry.options) == 0
        assert engine.get_workflow(wid) is entry
        assert "ca.path" in repr(entry)

    def test_duplicate_rejected(self, engine):
        wid = new_workflow_identifier("ca.path")
        engine.register(wid, ConfigurationOptions(), _echo)
        with pytest.raises(WorkflowError, match="already registered"):
            engine.register(wid, ConfigurationOptions(), _echo)

    def test_hidden_excluded_from_listing(self, engine):
        engine.register(new_workflow_identifier("b.visible"), ConfigurationOptions(), _echo)
        engine.register(new_workflow_identifier("a.visible"), ConfigurationOptions(), _echo)
        hidden = engine.register(
            new_workflow_identifier("internal.secret"),
            ConfigurationOptions(),
            _echo,
        )
        hidden.set_visibility(False)

        names = [i.name for i in engine.visible_workflows()]
        assert names == ["a.visible", "b.visible"]

    def test_unknown_workflow_lookup(self, engine):
        assert engine.get_workflow(new_workflow_identifier("nope")) is None


class TestInvoke:
    def test_inputs_and_outputs(self, engine):
        wid = new_workflow_identifier("echo")
        engine.register(wid, ConfigurationOptions(("value",)), _echo)

        assert engine.invoke(wid, ["x"]) == ["x", "done"]
        assert engine.invoke(wid) == ["done"]

    def test_hidden_still_invokable(self, engine):
        wid = new_workflow_identifier("internal.hidden")
        engine.register(wid, ConfigurationOptions(), _echo).set_visibility(False)
        assert engine.invoke(wid) == ["done"]

    def test_none_output_becomes_empty_list(self, engine):
        wid = new_workflow_identifier("noop")
        engine.register(wid, ConfigurationOptions(), lambda inv, inputs: None)
        assert engine.invoke(wid) == []

    def test_unknown_workflow(self, engine):
        with pytest.raises(WorkflowError, match="not registered"):
            engine.invoke(new_workflow_identifier("ghost"))

    def test_handler_exception_propagates(self, engine):
        def boom(invocation, inputs):
            raise RuntimeError("handler failed")

        wid = new_workflow_identifier("boom")
        engine.register(wid, ConfigurationOptions(), boom)
        with pytest.raises(RuntimeError, match="handler failed"):
            engine.invoke(wid)

    def test_invocation_context(self, engine, config, logger):
        seen = {}

        def capture(invocation, inputs):
            seen["config"] = invocation.get_configuration()
            seen["logger"] = invocation.get_enhanced_logger()
            seen["engine"] = invocation.get_engine()
            seen["id"] = invocation.get_workflow_identifier()
            return []

        wid = new_workflow_identifier("ctx.capture")
        engine.register(wid, ConfigurationOptions(), capture)
        engine.invoke(wid)

        assert seen["config"] is config
        assert seen["engine"] is engine
        assert seen["id"] == wid
        assert seen["logger"].name == f"{logger.name}.ctx.capture"

    def test_inputs_are_copied(self, engine):
        def mutate(invocation, inputs):
            inputs.append("mutated")
            return []

        wid = new_workflow_identifier("mutate")
        engine.register(wid, ConfigurationOptions(), mutate)
        original = ["a"]
        engine.invoke(wid, original)
        assert original == ["a"]

    def test_default_logger(self, config):
        seen = {}

        def capture(invocation, inputs):
            seen["logger"] = invocation.get_enhanced_logger()
            return []

        engine = WorkflowEngine(config)
        wid = new_workflow_identifier("x")
        engine.register(wid, ConfigurationOptions(), capture)
        engine.invoke(wid)
        assert isinstance(seen["logger"], logging.Logger)
        assert seen["logger"].name == "interceptca.workflow.x"
