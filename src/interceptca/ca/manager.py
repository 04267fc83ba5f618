"""Lifecycle manager for the transient CA.

Owns at most one :class:`CaRecord` per application context and makes
"check the certificate file, then act on the result" atomic with
respect to every other caller.

Usage::

    manager = CertAuthorityManager(metrics=collector)

    record = manager.get_or_create(config, log)   # lazy create / restore
    ...
    manager.cleanup(log)                          # at shutdown
"""

from __future__ import annotations

import logging
import os
import threading
from typing import TYPE_CHECKING

from interceptca import get_full_version
from interceptca.ca.base import CAError, CaRecord
from interceptca.ca.generator import init_ca
from interceptca.core.paths import write_to_file
from interceptca.core.types import CaState, CleanupTarget

if TYPE_CHECKING:
    from collections.abc import Callable

    from interceptca.config.configuration import Configuration
    from interceptca.metrics.collector import MetricsCollector

    CaGenerator = Callable[[Configuration, str, logging.Logger], CaRecord]


class CertAuthorityManager:
    """Get-or-create and cleanup of a single transient CA.

    Both public operations hold one lock for their whole
    read-check-write sequence, so concurrent callers never restore or
    regenerate the CA twice for the same missing file.

    Parameters
    ----------
    generator:
        Callable ``(config, version, logger) -> CaRecord`` that produces
        new CA material.  Defaults to :func:`init_ca`.
    version:
        Version string handed to *generator*.  Defaults to the package
        version.
    metrics:
        Optional collector for generation, restoration and cleanup
        failure counters.

    """

    def __init__(
        self,
        generator: CaGenerator | None = None,
        *,
        version: str | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._generator = generator or init_ca
        self._version = version or get_full_version()
        self._metrics = metrics
        self._record: CaRecord | None = None
        self._lock = threading.Lock()

    @property
    def state(self) -> CaState:
        """Current state, checking the certificate file on disk.

        ``MEMORY_ONLY`` only says a record is held while its file is
        gone.  A record with no PEM or no path is reported the same
        way even though it cannot be restored; the next
        :meth:`get_or_create` regenerates it instead.
        """
        with self._lock:
            if self._record is None:
                return CaState.ABSENT
            if _cert_file_missing(self._record.cert_file):
                return CaState.MEMORY_ONLY
            return CaState.ON_DISK

    def get_or_create(self, config: Configuration, logger: logging.Logger) -> CaRecord:
        """Return the CA, creating or restoring it as needed.

        Raises
        ------
        CAError
            If generation fails (the previous record, or none, is kept)
            or the certificate file cannot be rewritten.

        """
        with self._lock:
            create = False

            if self._record is None:
                create = True
            elif _cert_file_missing(self._record.cert_file):
                if self._record.restorable:
                    logger.info(
                        "Restoring temporary certificate file: %s",
                        self._record.cert_file,
                    )
                    self._restore(self._record, logger)
                else:
                    logger.warning("Used Certificate Authority is not existing anymore")
                    create = True

            if create:
                logger.info("Creating new Certificate Authority")
                self._record = self._generate(config, logger)
                self._count("ca_generations_total")

            return self._record

    def cleanup(self, logger: logging.Logger) -> None:
        """Delete the certificate file and forget the CA.

        Deletion failures are logged, never raised.  The record is
        dropped even if the file could not be removed.
        """
        with self._lock:
            if self._record is None:
                return

            cert_file = self._record.cert_file
            try:
                os.remove(cert_file)  # noqa: PTH107
            except OSError as exc:
                logger.warning(
                    "Failed to delete temporary certificate file: %s (%s)",
                    cert_file,
                    exc,
                    extra={"cleanup_target": CleanupTarget.CERT.value},
                )
                self._count(
                    "cleanup_failures_total",
                    {"target": CleanupTarget.CERT.value},
                )
            else:
                logger.info("Deleted temporary certificate file: %s", cert_file)

            self._record = None

    # -- internals (lock held) ----------------------------------------------

    def _generate(self, config: Configuration, logger: logging.Logger) -> CaRecord:
        try:
            return self._generator(config, self._version, logger)
        except CAError:
            raise
        except Exception as exc:
            msg = f"Certificate Authority generation failed: {exc}"
            raise CAError(msg) from exc

    def _restore(self, record: CaRecord, logger: logging.Logger) -> None:
        try:
            write_to_file(record.cert_file, record.cert_pem)
        except OSError as exc:
            logger.exception(
                "Failed to restore temporary certificate file: %s",
                record.cert_file,
            )
            msg = f"Failed to restore CA certificate file {record.cert_file}: {exc}"
            raise CAError(msg, retryable=True) from exc
        self._count("ca_restorations_total")

    def _count(self, name: str, labels: dict | None = None) -> None:
        if self._metrics is not None:
            self._metrics.increment(name, labels=labels)


def _cert_file_missing(cert_file: str) -> bool:
    """True only when the file is definitely gone.

    Other ``stat`` failures (e.g. permissions) count as present.
    """
    try:
        os.stat(cert_file)  # noqa: PTH116
    except FileNotFoundError:
        return True
    except OSError:
        return False
    return False
