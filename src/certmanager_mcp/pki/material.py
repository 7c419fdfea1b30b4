"""
Certificate material value objects.

A CertificateMaterial pairs an X.509 certificate with its RSA private key.
Chains are plain lists of certificates ordered from the leaf side to the root.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from cryptography import x509
from cryptography.x509.oid import NameOID
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    PrivateFormat,
    NoEncryption,
)

MIN_KEY_SIZE = 2048


def common_name(name: x509.Name) -> str:
    """Get the first common name of an X.509 name ('' if it has none)."""
    attributes = name.get_attributes_for_oid(NameOID.COMMON_NAME)
    if not attributes:
        return ""
    return str(attributes[0].value)


@dataclass(frozen=True)
class CertificateMaterial:
    """A certificate and (optionally) its private key.

    Attributes:
        certificate: The X.509 certificate
        private_key: The matching RSA private key, None for trust-only material
    """
    certificate: x509.Certificate
    private_key: Optional[rsa.RSAPrivateKey] = None

    @property
    def cert_der(self) -> bytes:
        return self.certificate.public_bytes(Encoding.DER)

    @property
    def subject_cn(self) -> str:
        return common_name(self.certificate.subject)

    @property
    def issuer_cn(self) -> str:
        return common_name(self.certificate.issuer)

    @property
    def sans(self) -> list[str]:
        """Subject alternative names as text, in certificate order."""
        try:
            ext = self.certificate.extensions.get_extension_for_class(
                x509.SubjectAlternativeName
            )
        except x509.ExtensionNotFound:
            return []
        return [str(general_name.value) for general_name in ext.value]

    @property
    def not_before(self) -> datetime:
        return self.certificate.not_valid_before_utc

    @property
    def not_after(self) -> datetime:
        return self.certificate.not_valid_after_utc

    @property
    def serial(self) -> int:
        return self.certificate.serial_number

    @property
    def is_self_signed(self) -> bool:
        return self.certificate.issuer == self.certificate.subject

    @property
    def fingerprint(self) -> str:
        """SHA256 fingerprint of the certificate (upper-case hex)."""
        return self.certificate.fingerprint(hashes.SHA256()).hex().upper()

    def cert_pem(self) -> str:
        return cert_to_pem(self.certificate)

    def key_pem(self) -> str:
        """Private key as a PKCS8 PEM string."""
        if self.private_key is None:
            raise ValueError(f"certificate '{self.subject_cn}' has no private key")
        return self.private_key.private_bytes(
            encoding=Encoding.PEM,
            format=PrivateFormat.PKCS8,
            encryption_algorithm=NoEncryption(),
        ).decode()

    def describe(self) -> dict:
        """Summarize the certificate without any key material."""
        return {
            "subject_cn": self.subject_cn,
            "issuer_cn": self.issuer_cn,
            "sans": self.sans,
            "serial": format(self.serial, "x"),
            "not_before": self.not_before.isoformat(),
            "not_after": self.not_after.isoformat(),
            "fingerprint": self.fingerprint,
        }


def cert_to_pem(cert: x509.Certificate) -> str:
    """Convert certificate to PEM string."""
    return cert.public_bytes(Encoding.PEM).decode()


def certs_to_pem(certs) -> str:
    """Concatenate certificates as PEM blocks, one per certificate."""
    return "".join(cert_to_pem(cert) for cert in certs)


def matches_key(cert: x509.Certificate, key: rsa.RSAPrivateKey) -> bool:
    """Check whether a certificate carries the public half of a key."""
    public_key = cert.public_key()
    if not isinstance(public_key, rsa.RSAPublicKey):
        return False
    return public_key.public_numbers() == key.public_key().public_numbers()


def order_chain(leaf: x509.Certificate, others) -> list[x509.Certificate]:
    """Order certificates by following issuer links up from a leaf.

    Args:
        leaf: The certificate the chain starts from (not included in the result)
        others: Candidate chain certificates in any order

    Returns:
        The candidates ordered so each certificate's issuer is the subject of
        the next one. Certificates that do not link are appended in their
        original order.
    """
    remaining = [cert for cert in others if cert != leaf]
    ordered = []
    current = leaf

    while remaining and current.issuer != current.subject:
        parent = next(
            (cert for cert in remaining if cert.subject == current.issuer),
            None,
        )
        if parent is None:
            break
        remaining.remove(parent)
        ordered.append(parent)
        current = parent

    return ordered + remaining
