"""Configuration subsystem for interceptca.

Public API::

    from interceptca.config import CACHE_PATH, Configuration

    config = Configuration.from_file("interceptca.yaml")
    config.settings.ca.key_size          # typed access
    config.get_string(CACHE_PATH)        # dynamic key/value access
"""

from interceptca.config.configuration import (
    CACHE_PATH,
    Configuration,
    ConfigValidationError,
)
from interceptca.config.settings import (
    CASettings,
    InterceptcaSettings,
    LoggingSettings,
    build_settings,
)

__all__ = [
    "CACHE_PATH",
    "CASettings",
    "ConfigValidationError",
    "Configuration",
    "InterceptcaSettings",
    "LoggingSettings",
    "build_settings",
]
