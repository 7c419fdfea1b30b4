"""
Certificate authority and leaf certificate issuance.

Generates self-signed root CAs and signs client/server certificates for mTLS.
"""

import logging
from datetime import datetime, timezone
from ipaddress import ip_address
from typing import Iterable

from cryptography import x509
from cryptography.x509.oid import NameOID, ExtendedKeyUsageOID
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import Encoding

from ..error_handling.errors import SigningError
from .material import CertificateMaterial, MIN_KEY_SIZE

logger = logging.getLogger(__name__)

DEFAULT_KEY_SIZE = 2048


def _generate_private_key(key_size: int) -> rsa.RSAPrivateKey:
    """Generate an RSA private key."""
    if key_size < MIN_KEY_SIZE:
        raise ValueError(f"RSA key size must be at least {MIN_KEY_SIZE} bits, got {key_size}")
    return rsa.generate_private_key(
        public_exponent=65537,
        key_size=key_size,
    )


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _general_name(name: str) -> x509.GeneralName:
    try:
        return x509.IPAddress(ip_address(name))
    except ValueError:
        return x509.DNSName(name)


def _alt_name_set(common_name: str, alt_names: Iterable[str]) -> list[str]:
    """Alternative names with the common name included, duplicates dropped."""
    names = []
    for name in [*(alt_names or []), common_name]:
        if name and name not in names:
            names.append(name)
    return names


def generate_root_ca(
    name: str,
    not_after: datetime,
    key_size: int = DEFAULT_KEY_SIZE,
) -> CertificateMaterial:
    """Generate a self-signed root CA certificate and key.

    Args:
        name: CA common name (used for both subject and issuer)
        not_after: Expiry of the CA certificate
        key_size: RSA modulus size in bits (at least 2048)

    Returns:
        The CA certificate with its private key

    Raises:
        ValueError: If the name is empty, the expiry has passed or the key
            size is too small
        SigningError: If key generation or self-signing fails
    """
    if not name:
        raise ValueError("CA name cannot be empty")

    not_after = _as_utc(not_after)
    if not_after <= datetime.now(timezone.utc):
        raise ValueError(f"expiry {not_after.isoformat()} is in the past")

    try:
        key = _generate_private_key(key_size)
    except ValueError:
        raise
    except Exception as e:
        raise SigningError("failed to generate CA key") from e

    subject = issuer = x509.Name([
        x509.NameAttribute(NameOID.COMMON_NAME, name),
    ])

    now = datetime.now(timezone.utc)
    try:
        cert = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(issuer)
            .public_key(key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now)
            .not_valid_after(not_after)
            .add_extension(
                x509.BasicConstraints(ca=True, path_length=None),
                critical=True,
            )
            .add_extension(
                x509.KeyUsage(
                    digital_signature=True,
                    key_cert_sign=True,
                    crl_sign=True,
                    key_encipherment=False,
                    content_commitment=False,
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
    except Exception as e:
        raise SigningError("failed to self-sign CA certificate") from e

    logger.info("Generated root CA '%s' valid until %s", name, not_after.isoformat())
    return CertificateMaterial(certificate=cert, private_key=key)


def issue_leaf(
    ca: CertificateMaterial,
    common_name: str,
    alt_names: Iterable[str],
    not_after: datetime,
    key_size: int = DEFAULT_KEY_SIZE,
) -> CertificateMaterial:
    """Issue a leaf certificate signed by a CA.

    The certificate is usable for both client and server authentication. The
    common name is always part of the subject alternative names.

    Issuance runs four steps in order: generate the leaf key, build the
    signing request, sign it with the CA key, parse the signed certificate.
    The first failing step aborts issuance.

    Args:
        ca: CA certificate and private key
        common_name: Hostname for a server or any identifier for a client
        alt_names: Additional DNS names or IP addresses
        not_after: Expiry of the issued certificate
        key_size: RSA modulus size in bits (at least 2048)

    Returns:
        The leaf certificate with its private key

    Raises:
        ValueError: If the common name is empty, the expiry has passed or the
            key size is too small
        SigningError: If the CA has no key or any issuance step fails
    """
    if not common_name:
        raise ValueError("common name cannot be empty")
    if ca.private_key is None:
        raise SigningError(f"CA '{ca.subject_cn}' has no private key to sign with")

    not_after = _as_utc(not_after)
    if not_after <= datetime.now(timezone.utc):
        raise ValueError(f"expiry {not_after.isoformat()} is in the past")
    names = _alt_name_set(common_name, alt_names)

    try:
        key = _generate_private_key(key_size)
    except ValueError:
        raise
    except Exception as e:
        raise SigningError("failed to generate certificate key") from e

    try:
        csr = _build_signing_request(key, common_name, names)
    except Exception as e:
        raise SigningError("failed to create certificate signing request") from e

    try:
        der = _sign_request(ca, csr, not_after)
    except Exception as e:
        raise SigningError("failed to sign certificate") from e

    try:
        cert = x509.load_der_x509_certificate(der)
    except Exception as e:
        raise SigningError("failed to parse signed certificate") from e

    logger.info(
        "Issued certificate '%s' signed by '%s' valid until %s",
        common_name, ca.subject_cn, not_after.isoformat(),
    )
    return CertificateMaterial(certificate=cert, private_key=key)


def _build_signing_request(
    key: rsa.RSAPrivateKey,
    common_name: str,
    names: list[str],
) -> x509.CertificateSigningRequest:
    return (
        x509.CertificateSigningRequestBuilder()
        .subject_name(x509.Name([
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
        ]))
        .add_extension(
            x509.SubjectAlternativeName([_general_name(name) for name in names]),
            critical=False,
        )
        .sign(key, hashes.SHA256())
    )


def _sign_request(
    ca: CertificateMaterial,
    csr: x509.CertificateSigningRequest,
    not_after: datetime,
) -> bytes:
    if not csr.is_signature_valid:
        raise ValueError("signing request has an invalid signature")

    san = csr.extensions.get_extension_for_class(x509.SubjectAlternativeName)
    now = datetime.now(timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(csr.subject)
        .issuer_name(ca.certificate.subject)
        .public_key(csr.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(not_after)
        .add_extension(
            x509.BasicConstraints(ca=False, path_length=None),
            critical=True,
        )
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                key_encipherment=True,
                key_cert_sign=False,
                crl_sign=False,
                content_commitment=False,
                data_encipherment=False,
                key_agreement=False,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(
            x509.ExtendedKeyUsage([
                ExtendedKeyUsageOID.SERVER_AUTH,
                ExtendedKeyUsageOID.CLIENT_AUTH,
            ]),
            critical=False,
        )
        .add_extension(san.value, critical=False)
        .add_extension(
            x509.SubjectKeyIdentifier.from_public_key(csr.public_key()),
            critical=False,
        )
        .add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(ca.private_key.public_key()),
            critical=False,
        )
        .sign(ca.private_key, hashes.SHA256())
    )
    return cert.public_bytes(Encoding.DER)
