"""Configuration loader and key/value accessor.

Lifecycle::

    # 1. CLI loads the file once, at startup
    config = Configuration.from_file("interceptca.yaml")

    # 2. Typed access
    config.settings.ca.key_size

    # 3. Dynamic dot-path access and runtime overrides
    config.get_string(CACHE_PATH)
    config.set(CACHE_PATH, "/var/cache/interceptca")
"""

from __future__ import annotations

import copy
import json
import logging
import os
import re
import threading
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator

from interceptca.config.settings import InterceptcaSettings, build_settings

_SCHEMA_PATH = Path(__file__).parent / "schema.json"

_ENV_RE = re.compile(
    r"^\$\{([^}:]+?)(?::-(.*))?\}$",
    re.DOTALL,
)

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})

CACHE_PATH = "cache_path"

log = logging.getLogger(__name__)


class ConfigValidationError(Exception):
    """Raised when loading or validation finds one or more problems."""

    def __init__(self, errors: list[str]) -> None:
        """Store *errors* and build a human-readable message."""
        self.errors = errors
        body = "\n".join(f"  - {e}" for e in errors)
        super().__init__(f"Configuration validation failed:\n{body}")


# ---------------------------------------------------------------------------
# Environment variable resolution
# ---------------------------------------------------------------------------


def _resolve_value(value: str, path: str) -> str:
    """Replace ``${VAR}`` or ``${VAR:-default}`` with env var value."""
    match = _ENV_RE.match(value)
    if match is None:
        return value
    var_name = match.group(1)
    fallback = match.group(2)
    resolved = os.environ.get(var_name)
    if resolved is not None:
        return resolved
    if fallback is not None:
        return fallback
    raise ConfigValidationError(
        [
            f"Environment variable '${{{var_name}}}' referenced "
            f"at '{path}' is not set and has no default",
        ],
    )


def _resolve_env_vars(data: Any, path: str = "") -> None:  # noqa: ANN401
    """Walk *data* in-place and resolve ``${VAR}``/``${VAR:-default}`` strings."""
    if isinstance(data, dict):
        for key in data:
            child_path = f"{path}.{key}" if path else key
            if isinstance(data[key], str):
                data[key] = _resolve_value(data[key], child_path)
            elif isinstance(data[key], (dict, list)):
                _resolve_env_vars(data[key], child_path)
    elif isinstance(data, list):
        for idx, item in enumerate(data):
            child_path = f"{path}[{idx}]"
            if isinstance(item, str):
                data[idx] = _resolve_value(item, child_path)
            elif isinstance(item, (dict, list)):
                _resolve_env_vars(item, child_path)


def _read_file(config_file: Path) -> dict:
    try:
        with open(config_file, encoding="utf-8") as f:  # noqa: PTH123
            if config_file.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except OSError as exc:
        raise ConfigValidationError([f"cannot read {config_file}: {exc}"]) from exc
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigValidationError([f"cannot parse {config_file}: {exc}"]) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigValidationError(
            [f"{config_file}: top level must be a mapping, got {type(data).__name__}"],
        )
    return data


def _load_schema() -> dict:
    with open(_SCHEMA_PATH, encoding="utf-8") as f:  # noqa: PTH123
        return json.load(f)


# ---------------------------------------------------------------------------
# Config class
# ---------------------------------------------------------------------------


class Configuration:
    """Validated configuration with typed and dot-path access.

    Values set with :meth:`set` override the loaded data and are
    visible to every later :meth:`get` and to :attr:`settings`.
    Reads and writes are guarded by a lock so that worker threads may
    query the configuration while the CLI applies overrides.
    """

    def __init__(self, data: dict | None = None, *, source: str | None = None) -> None:
        """Validate *data* and build the typed settings tree.

        Raises
        ------
        ConfigValidationError
            If the data fails schema or cross-field validation.

        """
        raw = copy.deepcopy(data) if data else {}
        _resolve_env_vars(raw)
        self._validate(raw)

        self._data: dict = raw
        self._source = source
        self._overrides: dict[str, Any] = {}
        self._lock = threading.RLock()
        self._settings: InterceptcaSettings = build_settings(raw)

    @classmethod
    def from_file(cls, config_file: str | Path) -> Configuration:
        """Load a YAML or JSON configuration file."""
        path = Path(config_file)
        data = _read_file(path)
        config = cls(data, source=str(path))
        log.debug("Loaded configuration from %s", path)
        return config

    @classmethod
    def from_dict(cls, data: dict | None = None) -> Configuration:
        """Build a configuration without a backing file."""
        return cls(data)

    # -- validation ---------------------------------------------------------

    @staticmethod
    def _validate(data: dict) -> None:
        validator = Draft202012Validator(_load_schema())
        errors = [
            f"{'.'.join(str(p) for p in err.absolute_path) or '<root>'}: {err.message}"
            for err in sorted(validator.iter_errors(data), key=lambda e: list(e.path))
        ]
        if errors:
            raise ConfigValidationError(errors)

        ca = data.get("ca") or {}
        prefix = ca.get("file_prefix", "")
        if prefix and (os.sep in prefix or (os.altsep and os.altsep in prefix)):
            errors.append(
                f"ca.file_prefix must be a bare file name prefix (got '{prefix}')",
            )
        if prefix in (".", ".."):
            errors.append(f"ca.file_prefix must not be '{prefix}'")

        cache_path = data.get("cache_path")
        if cache_path is not None and not cache_path.strip():
            errors.append("cache_path must not be blank")

        if errors:
            raise ConfigValidationError(errors)

    # -- typed access -------------------------------------------------------

    @property
    def settings(self) -> InterceptcaSettings:
        """Fully-typed, frozen settings tree (overrides applied)."""
        with self._lock:
            return self._settings

    @property
    def source(self) -> str | None:
        """Path of the file this configuration was read from, if any."""
        return self._source

    # -- dynamic access -----------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:  # noqa: ANN401
        """Return the value at dot-path *key*, or *default*.

        Runtime overrides win over file data.  Keys that only exist as
        typed defaults (e.g. ``cache_path``) resolve through
        :attr:`settings`.
        """
        with self._lock:
            if key in self._overrides:
                return self._overrides[key]

            node: Any = self._data
            for part in key.split("."):
                if not isinstance(node, dict) or part not in node:
                    node = _MISSING
                    break
                node = node[part]
            if node is not _MISSING:
                return node

            node = self._settings
            for part in key.split("."):
                if not hasattr(node, part):
                    return default
                node = getattr(node, part)
            return node

    def get_string(self, key: str) -> str:
        """Return *key* as a string; missing keys yield ``""``."""
        value = self.get(key)
        return "" if value is None else str(value)

    def get_int(self, key: str, default: int = 0) -> int:
        """Return *key* as an integer, or *default* if unset."""
        value = self.get(key)
        if value is None:
            return default
        return int(value)

    def get_bool(self, key: str, *, default: bool = False) -> bool:
        """Return *key* as a boolean; strings like ``"true"`` are accepted."""
        value = self.get(key)
        if value is None:
            return default
        if isinstance(value, str):
            return value.strip().lower() in _TRUE_STRINGS
        return bool(value)

    def set(self, key: str, value: Any) -> None:  # noqa: ANN401
        """Override *key* for the rest of the process lifetime."""
        with self._lock:
            self._overrides[key] = value
            merged = copy.deepcopy(self._data)
            for dotted, val in self._overrides.items():
                _assign(merged, dotted, val)
            self._settings = build_settings(merged)

    def __repr__(self) -> str:
        """Return a developer-friendly representation."""
        return f"<Configuration source={self._source or '<dict>'}>"


class _Missing:
    pass


_MISSING = _Missing()


def _assign(data: dict, dotted: str, value: Any) -> None:  # noqa: ANN401
    parts = dotted.split(".")
    node = data
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[parts[-1]] = value
