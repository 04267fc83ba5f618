"""CA record and error types.

:class:`CaRecord` describes one generated transient CA: where its
certificate lives on disk and the authoritative PEM bytes that can
always be written back there.  :class:`CAError` is raised when a CA
cannot be generated or restored.
"""

from __future__ import annotations

from dataclasses import dataclass, field


class CAError(Exception):
    """Raised when the transient CA cannot be generated or restored.

    Parameters
    ----------
    detail:
        Human-readable description of the failure.
    retryable:
        Whether a subsequent call may succeed (e.g. a transient disk
        error while restoring the certificate file).

    """

    def __init__(self, detail: str, *, retryable: bool = False) -> None:
        self.detail = detail
        self.retryable = retryable
        super().__init__(detail)


@dataclass(frozen=True)
class CaRecord:
    """A generated transient CA.

    Attributes
    ----------
    cert_file:
        Path of the PEM certificate on disk.  The file may have been
        removed by something outside this process.
    cert_pem:
        PEM-encoded certificate.  When non-empty the file at
        ``cert_file`` can be recreated without new key material.
    key_pem:
        PEM-encoded private key.  Kept in memory only and used to
        sign leaf certificates.

    """

    cert_file: str
    cert_pem: bytes
    key_pem: bytes = field(default=b"", repr=False)

    @property
    def restorable(self) -> bool:
        """True when the certificate file can be rewritten from memory."""
        return bool(self.cert_pem) and bool(self.cert_file)
