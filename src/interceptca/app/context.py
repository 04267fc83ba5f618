"""Application context -- the process-wide service container.

Created once at startup and passed explicitly to call sites.  Owns
the single :class:`CertAuthorityManager`, the metrics collector and
the workflow engine with the hidden cleanup workflow registered.

Usage::

    from interceptca.app.context import AppContext

    ctx = AppContext(config)
    try:
        record = ctx.get_ca()
        ...
    finally:
        ctx.shutdown()
"""

from __future__ import annotations

import logging
import signal
import threading
from typing import TYPE_CHECKING

from interceptca.ca.manager import CertAuthorityManager
from interceptca.metrics.collector import MetricsCollector
from interceptca.workflows.cleanup import WORKFLOWID_GLOBAL_CLEANUP, init_cleanup
from interceptca.workflows.engine import WorkflowEngine

if TYPE_CHECKING:
    from interceptca.ca.base import CaRecord
    from interceptca.ca.manager import CaGenerator
    from interceptca.config.configuration import Configuration

log = logging.getLogger(__name__)


class AppContext:
    """Long-lived owner of the transient CA and its teardown.

    Parameters
    ----------
    config:
        Loaded configuration.
    generator:
        Optional CA generator override passed to the manager.

    """

    def __init__(
        self,
        config: Configuration,
        *,
        generator: CaGenerator | None = None,
    ) -> None:
        self.config = config
        self.logger = logging.getLogger("interceptca")
        self.metrics = MetricsCollector()
        self.authority = CertAuthorityManager(generator, metrics=self.metrics)
        self.engine = WorkflowEngine(config, self.logger)
        init_cleanup(self.engine, self.authority, metrics=self.metrics)

        self._shutdown_lock = threading.Lock()
        self._shut_down = False

    @property
    def is_shut_down(self) -> bool:
        """True once :meth:`shutdown` has run."""
        return self._shut_down

    def get_ca(self) -> CaRecord:
        """Return the transient CA, creating or restoring it."""
        return self.authority.get_or_create(self.config, self.logger)

    def shutdown(self) -> None:
        """Invoke the hidden cleanup workflow once; later calls are no-ops."""
        with self._shutdown_lock:
            if self._shut_down:
                return
            self._shut_down = True
        log.debug("Running shutdown cleanup")
        self.engine.invoke(WORKFLOWID_GLOBAL_CLEANUP)

    def register_signals(self) -> None:
        """Turn SIGTERM into ``SystemExit`` so ``finally`` blocks run.

        Must be called from the main thread.
        """
        try:
            signal.signal(signal.SIGTERM, _raise_system_exit)
        except (ValueError, OSError):
            # Not in main thread or signals not supported
            log.debug("Could not register signal handlers (not main thread)")

    def __enter__(self) -> AppContext:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()


def _raise_system_exit(signum: int, frame) -> None:  # noqa: ANN001
    sig_name = signal.Signals(signum).name
    log.info("Received %s, cleaning up", sig_name)
    raise SystemExit(128 + signum)
