"""Temporary directory reaper.

Removes the per-version scratch directory at process teardown.
Stateless and safe to call any number of times; failures are logged
and counted, never raised.
"""

from __future__ import annotations

import shutil
from typing import TYPE_CHECKING

from interceptca import get_full_version
from interceptca.config.configuration import CACHE_PATH
from interceptca.core.paths import get_temporary_directory
from interceptca.core.types import CleanupTarget

if TYPE_CHECKING:
    import logging

    from interceptca.config.configuration import Configuration
    from interceptca.metrics.collector import MetricsCollector


def cleanup_temp_directory(
    config: Configuration,
    logger: logging.Logger,
    *,
    metrics: MetricsCollector | None = None,
) -> None:
    """Recursively delete the temporary directory derived from *config*."""
    tmp_directory = get_temporary_directory(config.get_string(CACHE_PATH), get_full_version())

    if not tmp_directory.exists():
        logger.debug("Temporary directory already absent: %s", tmp_directory)
        return

    try:
        shutil.rmtree(tmp_directory)
    except FileNotFoundError:
        # Removed concurrently between the check and the delete.
        logger.debug("Temporary directory already absent: %s", tmp_directory)
        return
    except OSError as exc:
        logger.warning(
            "Failed to delete temporary directory: %s (%s)",
            tmp_directory,
            exc,
            extra={"cleanup_target": CleanupTarget.TEMPDIR.value},
        )
        if metrics is not None:
            metrics.increment(
                "cleanup_failures_total",
                labels={"target": CleanupTarget.TEMPDIR.value},
            )
        return

    logger.info("Deleted temporary directory: %s", tmp_directory)
