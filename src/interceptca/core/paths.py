"""Filesystem locations and atomic file writes.

Usage::

    from interceptca.core.paths import get_temporary_directory, write_to_file

    tmp = get_temporary_directory(cache_path, get_full_version())
    write_to_file(tmp / "ca.crt", pem)
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path

_TMP_DIR_NAME = "tmp"


def default_cache_path() -> Path:
    """Return the per-user cache directory.

    Honours ``XDG_CACHE_HOME`` and falls back to ``~/.cache``.
    """
    base = os.environ.get("XDG_CACHE_HOME") or str(Path.home() / ".cache")
    return Path(base) / "interceptca"


def get_temporary_directory(cache_path: str | Path, version: str) -> Path:
    """Return the scratch directory for *version* under *cache_path*.

    Each version gets its own directory; reaping one never touches another.
    """
    if not cache_path:
        cache_path = default_cache_path()
    return Path(cache_path) / version / _TMP_DIR_NAME


def write_to_file(path: str | Path, data: bytes) -> None:
    """Write *data* to *path* atomically.

    Parent directories are created as needed.  The bytes go to a
    sibling temporary file which is then renamed over *path*, so
    readers see either nothing or the complete content.

    Raises
    ------
    OSError
        If the directory cannot be created or the write fails.

    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True, mode=0o700)

    fd, tmp_name = tempfile.mkstemp(
        dir=str(target.parent),
        prefix=f".{target.name}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.chmod(tmp_name, 0o644)  # noqa: PTH101
        os.replace(tmp_name, target)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)  # noqa: PTH108
        raise
