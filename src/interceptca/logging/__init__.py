"""Logging subsystem for interceptca.

Public API::

    from interceptca.logging import configure_logging

    configure_logging(config.settings.logging)
"""

from interceptca.logging.setup import configure_logging

__all__ = ["configure_logging"]
