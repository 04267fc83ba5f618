"""Typed, frozen dataclasses for every configuration section.

These builders are the single source of truth for default values.
The bundled JSON Schema only constrains what a config file may say.

Access pattern::

    cfg = Configuration.from_file("interceptca.yaml")
    ca = cfg.settings.ca
    print(ca.key_size, ca.validity_days)
"""

from __future__ import annotations

from dataclasses import dataclass

from interceptca.core.paths import default_cache_path

# ---------------------------------------------------------------------------
# CA
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CASettings:
    """Parameters for generating the transient CA."""

    key_size: int
    validity_days: int
    common_name: str
    organization: str
    file_prefix: str


def _build_ca(data: dict | None) -> CASettings:
    d = data or {}
    return CASettings(
        key_size=d.get("key_size", 2048),
        validity_days=d.get("validity_days", 1),
        common_name=d.get("common_name", "interceptca transient CA"),
        organization=d.get("organization", "interceptca"),
        file_prefix=d.get("file_prefix", "interceptca-ca-"),
    )


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoggingSettings:
    """Log level and output format (``json`` or ``text``)."""

    level: str
    format: str


def _build_logging(data: dict | None) -> LoggingSettings:
    d = data or {}
    return LoggingSettings(
        level=d.get("level", "INFO"),
        format=d.get("format", "text"),
    )


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InterceptcaSettings:
    """Root of the typed settings tree."""

    cache_path: str
    ca: CASettings
    logging: LoggingSettings


def build_settings(data: dict) -> InterceptcaSettings:
    """Build the full typed settings tree from raw config data."""
    return InterceptcaSettings(
        cache_path=data.get("cache_path") or str(default_cache_path()),
        ca=_build_ca(data.get("ca")),
        logging=_build_logging(data.get("logging")),
    )
