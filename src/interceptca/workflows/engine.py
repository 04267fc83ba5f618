"""Workflow engine -- registers named operations and invokes them.

A workflow is a handler ``(invocation, inputs) -> outputs`` stored
under a stable :class:`WorkflowIdentifier`.  Hidden workflows are
still invokable but are left out of :meth:`WorkflowEngine.visible_workflows`,
which is what user-facing listings show.

Usage::

    from interceptca.workflows.engine import WorkflowEngine, new_workflow_identifier

    engine = WorkflowEngine(config, logger)
    entry = engine.register(new_workflow_identifier("ca.show"), ConfigurationOptions(), handler)
    outputs = engine.invoke(entry.identifier)
"""

from __future__ import annotations

import logging
import re
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    from interceptca.config.configuration import Configuration

    WorkflowHandler = Callable[["InvocationContext", list[Any]], list[Any]]

log = logging.getLogger(__name__)

_SCHEME = "flw"
_NAME_RE = re.compile(r"^[a-z][a-z0-9_-]*(\.[a-z][a-z0-9_-]*)*$")


class WorkflowError(Exception):
    """Raised on invalid registration or invocation of a workflow."""


@dataclass(frozen=True)
class WorkflowIdentifier:
    """Stable identifier of a registered workflow."""

    name: str

    def __str__(self) -> str:
        return f"{_SCHEME}://{self.name}"


def new_workflow_identifier(name: str) -> WorkflowIdentifier:
    """Build an identifier from a dotted lower-case *name*.

    Raises
    ------
    WorkflowError
        If *name* is not a valid dotted identifier.

    """
    if not _NAME_RE.match(name):
        msg = f"Invalid workflow name '{name}'"
        raise WorkflowError(msg)
    return WorkflowIdentifier(name)


@dataclass(frozen=True)
class ConfigurationOptions:
    """Names of the configuration keys a workflow accepts."""

    names: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.names)


class WorkflowEntry:
    """A registered workflow and its visibility flag."""

    def __init__(
        self,
        identifier: WorkflowIdentifier,
        options: ConfigurationOptions,
        handler: WorkflowHandler,
    ) -> None:
        self.identifier = identifier
        self.options = options
        self.handler = handler
        self._visible = True

    @property
    def visible(self) -> bool:
        return self._visible

    def set_visibility(self, visible: bool) -> None:  # noqa: FBT001
        self._visible = visible

    def __repr__(self) -> str:
        return f"<WorkflowEntry {self.identifier} visible={self._visible}>"


class InvocationContext:
    """What a running workflow may reach: config, logger and the engine."""

    def __init__(
        self,
        engine: WorkflowEngine,
        identifier: WorkflowIdentifier,
        config: Configuration,
        logger: logging.Logger,
    ) -> None:
        self._engine = engine
        self._identifier = identifier
        self._config = config
        self._logger = logger

    def get_configuration(self) -> Configuration:
        return self._config

    def get_enhanced_logger(self) -> logging.Logger:
        return self._logger

    def get_engine(self) -> WorkflowEngine:
        return self._engine

    def get_workflow_identifier(self) -> WorkflowIdentifier:
        return self._identifier


class WorkflowEngine:
    """Registry and dispatcher of workflows.

    Parameters
    ----------
    config:
        Configuration handed to every invocation.
    logger:
        Logger handed to every invocation.  Each workflow receives a
        child logger named after its identifier.

    """

    def __init__(self, config: Configuration, logger: logging.Logger | None = None) -> None:
        self._config = config
        self._logger = logger or logging.getLogger("interceptca.workflow")
        self._entries: dict[WorkflowIdentifier, WorkflowEntry] = {}
        self._lock = threading.Lock()

    def register(
        self,
        identifier: WorkflowIdentifier,
        options: ConfigurationOptions,
        handler: WorkflowHandler,
    ) -> WorkflowEntry:
        """Register *handler* under *identifier*.

        Raises
        ------
        WorkflowError
            If *identifier* is already registered.

        """
        with self._lock:
            if identifier in self._entries:
                msg = f"Workflow {identifier} is already registered"
                raise WorkflowError(msg)
            entry = WorkflowEntry(identifier, options, handler)
            self._entries[identifier] = entry
        log.debug("Registered workflow %s", identifier)
        return entry

    def get_workflow(self, identifier: WorkflowIdentifier) -> WorkflowEntry | None:
        with self._lock:
            return self._entries.get(identifier)

    def visible_workflows(self) -> list[WorkflowIdentifier]:
        """Identifiers of every workflow not marked hidden, sorted by name."""
        with self._lock:
            return sorted(
                (e.identifier for e in self._entries.values() if e.visible),
                key=lambda i: i.name,
            )

    def invoke(
        self,
        identifier: WorkflowIdentifier,
        inputs: list[Any] | None = None,
    ) -> list[Any]:
        """Run the workflow registered under *identifier*.

        Exceptions raised by the handler propagate to the caller.

        Raises
        ------
        WorkflowError
            If no workflow is registered under *identifier*.

        """
        entry = self.get_workflow(identifier)
        if entry is None:
            msg = f"Workflow {identifier} is not registered"
            raise WorkflowError(msg)

        invocation = InvocationContext(
            self,
            identifier,
            self._config,
            self._logger.getChild(identifier.name),
        )

        start = time.monotonic()
        try:
            outputs = entry.handler(invocation, list(inputs or []))
        finally:
            duration_ms = (time.monotonic() - start) * 1000
            log.debug(
                "Workflow %s finished",
                identifier,
                extra={"workflow": identifier.name, "duration_ms": round(duration_ms, 2)},
            )
        return list(outputs or [])
