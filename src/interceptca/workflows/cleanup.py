"""Hidden shutdown workflow: CA cleanup, then temp directory cleanup.

Registered once per engine by :func:`init_cleanup` and invoked at
process teardown.  Both steps are best-effort; the workflow itself
never fails because of them.
"""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING, Any

from interceptca.cleanup.tempdir import cleanup_temp_directory
from interceptca.workflows.engine import ConfigurationOptions, new_workflow_identifier

if TYPE_CHECKING:
    from interceptca.ca.manager import CertAuthorityManager
    from interceptca.metrics.collector import MetricsCollector
    from interceptca.workflows.engine import InvocationContext, WorkflowEngine, WorkflowEntry

WORKFLOWID_GLOBAL_CLEANUP = new_workflow_identifier("internal.cleanup")


def init_cleanup(
    engine: WorkflowEngine,
    authority: CertAuthorityManager,
    *,
    metrics: MetricsCollector | None = None,
) -> WorkflowEntry:
    """Register the hidden cleanup workflow for *authority* with *engine*."""
    entry = engine.register(
        WORKFLOWID_GLOBAL_CLEANUP,
        ConfigurationOptions(),
        functools.partial(global_cleanup_workflow, authority=authority, metrics=metrics),
    )
    entry.set_visibility(False)
    return entry


def global_cleanup_workflow(
    invocation: InvocationContext,
    _inputs: list[Any],
    *,
    authority: CertAuthorityManager,
    metrics: MetricsCollector | None = None,
) -> list[Any]:
    """Delete the CA certificate, then the temporary directory."""
    logger = invocation.get_enhanced_logger()
    config = invocation.get_configuration()

    authority.cleanup(logger)
    cleanup_temp_directory(config, logger, metrics=metrics)

    return []
