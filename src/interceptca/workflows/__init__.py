"""Workflow engine and the built-in hidden cleanup workflow."""

from interceptca.workflows.cleanup import WORKFLOWID_GLOBAL_CLEANUP, init_cleanup
from interceptca.workflows.engine import (
    ConfigurationOptions,
    InvocationContext,
    WorkflowEngine,
    WorkflowEntry,
    WorkflowError,
    WorkflowIdentifier,
    new_workflow_identifier,
)

__all__ = [
    "WORKFLOWID_GLOBAL_CLEANUP",
    "ConfigurationOptions",
    "InvocationContext",
    "WorkflowEngine",
    "WorkflowEntry",
    "WorkflowError",
    "WorkflowIdentifier",
    "init_cleanup",
    "new_workflow_identifier",
]
