"""Enumerations shared across interceptca."""

from __future__ import annotations

from enum import Enum


class CaState(str, Enum):
    """Observable state of the transient CA held by the manager.

    ``ABSENT`` -- no CA has been generated (or it was cleaned up).
    ``ON_DISK`` -- the certificate file exists at its recorded path.
    ``MEMORY_ONLY`` -- the file is gone but the PEM is still cached.
    """

    ABSENT = "absent"
    ON_DISK = "on_disk"
    MEMORY_ONLY = "memory_only"


class CleanupTarget(str, Enum):
    """Label for what a best-effort cleanup was trying to remove."""

    CERT = "cert"
    TEMPDIR = "tempdir"
