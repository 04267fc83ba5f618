"""Transient CA: record type, generator, and lifecycle manager."""

from interceptca.ca.base import CAError, CaRecord
from interceptca.ca.manager import CertAuthorityManager

__all__ = [
    "CAError",
    "CaRecord",
    "CertAuthorityManager",
]
