"""Root conftest for the interceptca test suite."""

from __future__ import annotations

import logging
import sys
import threading
import time
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Make ``src/`` importable without installing the package
# ---------------------------------------------------------------------------
_SRC = str(Path(__file__).resolve().parent.parent / "src")
if _SRC not in sys.path:
    sys.path.insert(0, _SRC)

from interceptca import get_full_version  # noqa: E402
from interceptca.ca.base import CaRecord  # noqa: E402
from interceptca.ca.manager import CertAuthorityManager  # noqa: E402
from interceptca.config import CACHE_PATH, Configuration  # noqa: E402
from interceptca.core.paths import get_temporary_directory, write_to_file  # noqa: E402
from interceptca.metrics.collector import MetricsCollector  # noqa: E402


# ---------------------------------------------------------------------------
# Fake CA generator -- fresh, deterministic material per call
# ---------------------------------------------------------------------------


class FakeGenerator:
    """Stand-in for ``init_ca`` that counts calls.

    Each call writes ``ca-<n>.crt`` into the temporary directory with a
    distinct PEM body.  ``delay`` widens race windows in concurrency
    tests; ``empty_pem`` makes records unrestorable; ``error`` is raised
    instead of generating.
    """

    def __init__(self) -> None:
        self.calls = 0
        self.delay = 0.0
        self.empty_pem = False
        self.error: Exception | None = None
        self._lock = threading.Lock()

    def __call__(self, config: Configuration, version: str, logger: logging.Logger) -> CaRecord:
        with self._lock:
            self.calls += 1
            n = self.calls
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error

        pem = f"-----BEGIN CERTIFICATE-----\nfake-ca-{n}\n-----END CERTIFICATE-----\n".encode()
        tmp = get_temporary_directory(config.get_string(CACHE_PATH), version)
        cert_file = tmp / f"ca-{n}.crt"
        write_to_file(cert_file, pem)
        return CaRecord(
            cert_file=str(cert_file),
            cert_pem=b"" if self.empty_pem else pem,
            key_pem=b"fake-key",
        )


# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture()
def config(cache_dir: Path) -> Configuration:
    return Configuration.from_dict({"cache_path": str(cache_dir)})


@pytest.fixture()
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture()
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture()
def manager(generator: FakeGenerator, metrics: MetricsCollector) -> CertAuthorityManager:
    return CertAuthorityManager(generator, metrics=metrics)


@pytest.fixture()
def logger() -> logging.Logger:
    return logging.getLogger("interceptca.test")


@pytest.fixture(autouse=True)
def reset_interceptca_logger():
    """Undo ``configure_logging`` so caplog sees every record."""
    yield
    root = logging.getLogger("interceptca")
    root.handlers.clear()
    root.propagate = True
    root.setLevel(logging.NOTSET)


@pytest.fixture()
def tmp_dir(cache_dir: Path) -> Path:
    """The per-version temporary directory under *cache_dir*."""
    return get_temporary_directory(cache_dir, get_full_version())
