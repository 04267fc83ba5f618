"""Transient CA generation and leaf signing.

Generates a self-signed RSA root used to intercept TLS traffic.  The
certificate is written as PEM into the per-version temporary directory
under a unique file name; the private key never touches the disk.

Usage::

    record = init_ca(config, get_full_version(), log)
    cert_pem, key_pem = sign_leaf(record, "api.example.com")
"""

from __future__ import annotations

import ipaddress
import logging
import os
import tempfile
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from interceptca.ca.base import CAError, CaRecord
from interceptca.config.configuration import CACHE_PATH
from interceptca.core.paths import get_temporary_directory, write_to_file

if TYPE_CHECKING:
    from interceptca.config.configuration import Configuration

log = logging.getLogger(__name__)

# Tolerate clock skew between generation and the first handshake.
_BACKDATE = timedelta(seconds=60)
_LEAF_VALIDITY = timedelta(days=1)
# ub-common-name (RFC 5280)
_MAX_CN_LENGTH = 64


def init_ca(config: Configuration, version: str, logger: logging.Logger) -> CaRecord:
    """Generate a new transient CA and write its certificate to disk.

    Parameters
    ----------
    config:
        Supplies ``cache_path`` and the ``ca`` settings section.
    version:
        Version string scoping the temporary directory.
    logger:
        Logger of the calling invocation.

    Returns
    -------
    CaRecord
        The new record; ``cert_file`` exists and holds ``cert_pem``.

    Raises
    ------
    CAError
        If key generation, signing, or the file write fails.

    """
    ca_settings = config.settings.ca
    tmp_dir = get_temporary_directory(config.get_string(CACHE_PATH), version)

    try:
        key = rsa.generate_private_key(
            public_exponent=65537,
            key_size=ca_settings.key_size,
        )
        cert = _build_ca_certificate(
            key,
            common_name=ca_settings.common_name,
            organization=ca_settings.organization,
            validity_days=ca_settings.validity_days,
        )
    except (ValueError, TypeError) as exc:
        msg = f"Failed to generate CA key material: {exc}"
        raise CAError(msg) from exc

    cert_pem = cert.public_bytes(serialization.Encoding.PEM)
    key_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )

    try:
        tmp_dir.mkdir(parents=True, exist_ok=True, mode=0o700)
        fd, cert_file = tempfile.mkstemp(
            dir=str(tmp_dir),
            prefix=ca_settings.file_prefix,
            suffix=".crt",
        )
        os.close(fd)
        write_to_file(cert_file, cert_pem)
    except OSError as exc:
        msg = f"Failed to write CA certificate into {tmp_dir}: {exc}"
        raise CAError(msg, retryable=True) from exc

    logger.debug(
        "Generated CA certificate %s (serial=%x)",
        cert_file,
        cert.serial_number,
    )
    return CaRecord(cert_file=cert_file, cert_pem=cert_pem, key_pem=key_pem)


def _build_ca_certificate(
    key: rsa.RSAPrivateKey,
    *,
    common_name: str,
    organization: str,
    validity_days: int,
) -> x509.Certificate:
    attrs = [x509.NameAttribute(NameOID.COMMON_NAME, common_name)]
    if organization:
        attrs.insert(0, x509.NameAttribute(NameOID.ORGANIZATION_NAME, organization))
    subject = issuer = x509.Name(attrs)

    now = datetime.now(UTC)
    return (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - _BACKDATE)
        .not_valid_after(now + timedelta(days=validity_days))
        .add_extension(
            x509.BasicConstraints(ca=True, path_length=0),
            critical=True,
        )
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                key_cert_sign=True,
                crl_sign=True,
                content_commitment=False,
                key_encipherment=False,
                data_encipherment=False,
                key_agreement=False,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(
            x509.SubjectKeyIdentifier.from_public_key(key.public_key()),
            critical=False,
        )
        .sign(key, hashes.SHA256())
    )


def sign_leaf(record: CaRecord, hostname: str) -> tuple[bytes, bytes]:
    """Issue a short-lived leaf certificate for *hostname*.

    *hostname* may be a DNS name (internationalized names are converted
    to A-labels) or an IP literal.  Returns ``(cert_pem, key_pem)``.

    Raises
    ------
    CAError
        If the record carries no private key, the CA PEM is invalid,
        or *hostname* cannot be encoded into a certificate.

    """
    if not record.key_pem:
        msg = "CA record has no private key; cannot sign leaf certificates"
        raise CAError(msg)

    try:
        ca_cert = x509.load_pem_x509_certificate(record.cert_pem)
        ca_key = serialization.load_pem_private_key(record.key_pem, password=None)
    except ValueError as exc:
        msg = f"CA record holds unreadable PEM material: {exc}"
        raise CAError(msg) from exc

    san, subject_name = _leaf_names(hostname)
    # Names too long for a CN go in the SAN only; an empty subject
    # requires a critical SAN (RFC 5280, 4.2.1.6).
    subject_attrs = []
    if len(subject_name) <= _MAX_CN_LENGTH:
        subject_attrs.append(x509.NameAttribute(NameOID.COMMON_NAME, subject_name))

    leaf_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    now = datetime.now(UTC)
    try:
        cert = (
            x509.CertificateBuilder()
            .subject_name(x509.Name(subject_attrs))
            .issuer_name(ca_cert.subject)
            .public_key(leaf_key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now - _BACKDATE)
            .not_valid_after(now + _LEAF_VALIDITY)
            .add_extension(
                x509.SubjectAlternativeName([san]),
                critical=not subject_attrs,
            )
            .add_extension(
                x509.BasicConstraints(ca=False, path_length=None),
                critical=True,
            )
            .add_extension(
                x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]),
                critical=False,
            )
            .add_extension(
                x509.AuthorityKeyIdentifier.from_issuer_public_key(ca_key.public_key()),  # type: ignore[arg-type]
                critical=False,
            )
            .sign(ca_key, hashes.SHA256())  # type: ignore[arg-type]
        )
    except (ValueError, TypeError) as exc:
        msg = f"Failed to sign leaf certificate for {hostname!r}: {exc}"
        raise CAError(msg) from exc

    log.debug("Signed leaf certificate for %s", hostname)
    return (
        cert.public_bytes(serialization.Encoding.PEM),
        leaf_key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        ),
    )


def _leaf_names(hostname: str) -> tuple[x509.GeneralName, str]:
    """Return the SAN entry and subject CN text for *hostname*."""
    try:
        return x509.IPAddress(ipaddress.ip_address(hostname)), hostname
    except ValueError:
        pass

    if not hostname:
        msg = "Cannot sign a leaf certificate for an empty hostname"
        raise CAError(msg)
    try:
        a_label = hostname.encode("idna").decode("ascii")
        return x509.DNSName(a_label), a_label
    except ValueError as exc:
        msg = f"Invalid hostname {hostname!r}: {exc}"
        raise CAError(msg) from exc


def ca_environment(record: CaRecord) -> dict[str, str]:
    """Return environment variables that make child processes trust the CA."""
    return {
        "SSL_CERT_FILE": record.cert_file,
        "REQUESTS_CA_BUNDLE": record.cert_file,
        "NODE_EXTRA_CA_CERTS": record.cert_file,
    }
