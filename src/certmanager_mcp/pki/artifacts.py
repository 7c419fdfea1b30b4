"""
PEM artifact writing.

Writes private keys and certificate chains to disk. Existing files are
never overwritten.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    PrivateFormat,
    NoEncryption,
)

from ..error_handling.errors import ArtifactWriteError
from .material import CertificateMaterial, certs_to_pem
from .tls import presented_chain

logger = logging.getLogger(__name__)


def validate_output_dir(out_dir) -> Path:
    """Validate an output directory.

    A missing directory is accepted (it is created on write).

    Args:
        out_dir: The output directory

    Returns:
        The directory as a Path

    Raises:
        ValueError: If the path exists and is not a directory
    """
    path = Path(out_dir or ".")
    if path.exists() and not path.is_dir():
        raise ValueError("output directory must not be a file")
    return path


def _write_exclusive(path: Path, content: bytes) -> Optional[Path]:
    """Create a file with mode 0600; skip it if it already exists."""
    try:
        fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o600)
    except FileExistsError:
        logger.info("file %s already exists, skipping...", path)
        return None
    except OSError as e:
        raise ArtifactWriteError(f"failed to create {path}") from e

    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content)
    except OSError as e:
        raise ArtifactWriteError(f"failed to write {path}") from e

    return path


def write_private_key(path, key: rsa.RSAPrivateKey) -> Optional[Path]:
    """Write an RSA private key as a PKCS#1 PEM file.

    Args:
        path: Destination file
        key: The private key

    Returns:
        The written path, or None if the file already existed
    """
    path = Path(path)
    key_bytes = key.private_bytes(
        encoding=Encoding.PEM,
        format=PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=NoEncryption(),
    )
    logger.info("saving certificate key to %s ...", path)
    return _write_exclusive(path, key_bytes)


def write_certificates(path, *certs: x509.Certificate) -> Optional[Path]:
    """Write certificates as concatenated PEM blocks.

    Args:
        path: Destination file
        certs: Certificates in chain order, one PEM block each

    Returns:
        The written path, or None if the file already existed
    """
    path = Path(path)
    logger.info("saving certificate to %s ...", path)
    return _write_exclusive(path, certs_to_pem(certs).encode())


def _ensure_dir(out_dir) -> Path:
    path = validate_output_dir(out_dir)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ArtifactWriteError(f"failed to create output directory {path}") from e
    return path


def write_downloaded(
    out_dir,
    material: CertificateMaterial,
    chain=(),
    file_name: Optional[str] = None,
) -> dict[str, Optional[str]]:
    """Write a downloaded certificate, its full chain and its key.

    Files are named after the certificate's common name unless
    ``file_name`` is given: ``{name}.key`` and ``{name}.crt``.

    Returns:
        Mapping of artifact kind to written path (None when skipped)
    """
    path = _ensure_dir(out_dir)
    name = file_name or material.subject_cn

    key_path = write_private_key(path / f"{name}.key", material.private_key)
    cert_path = write_certificates(path / f"{name}.crt", material.certificate, *chain)

    return {
        "key": str(key_path) if key_path else None,
        "certificate": str(cert_path) if cert_path else None,
    }


def write_signed(
    out_dir,
    ca: CertificateMaterial,
    leaf: CertificateMaterial,
    ca_chain=(),
) -> dict[str, Optional[str]]:
    """Write a CA certificate plus a signed certificate chain and key.

    Produces ``{CA name}.crt``, ``{name}.crt`` (leaf followed by the
    presented chain) and ``{name}.key``.

    Returns:
        Mapping of artifact kind to written path (None when skipped)
    """
    path = _ensure_dir(out_dir)
    name = leaf.subject_cn

    ca_path = write_certificates(path / f"{ca.subject_cn}.crt", ca.certificate)
    cert_path = write_certificates(
        path / f"{name}.crt", *presented_chain(leaf, ca, ca_chain)
    )
    key_path = write_private_key(path / f"{name}.key", leaf.private_key)

    return {
        "ca_certificate": str(ca_path) if ca_path else None,
        "certificate": str(cert_path) if cert_path else None,
        "key": str(key_path) if key_path else None,
    }
