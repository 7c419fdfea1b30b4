"""
PKCS#12 bundle encoding and decoding.

Bundles hold one RSA private key, its certificate, and any chain
certificates. Key Vault returns them base64-encoded as secret values.
"""

import base64
import binascii
from dataclasses import dataclass, field

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import (
    BestAvailableEncryption,
    NoEncryption,
    pkcs12,
)

from ..error_handling.errors import (
    ContentTypeMismatchError,
    MalformedBundleError,
    UnsupportedKeyTypeError,
)
from .material import CertificateMaterial, matches_key, order_chain

PKCS12_CONTENT_TYPE = "application/x-pkcs12"


@dataclass(frozen=True)
class DecodedBundle:
    """A decoded bundle.

    Attributes:
        material: The leaf certificate and its private key
        chain: Remaining certificates ordered towards the root; empty when
            the leaf is itself a root
    """
    material: CertificateMaterial
    chain: list[x509.Certificate] = field(default_factory=list)


def _password_bytes(password: str):
    if not password:
        return None
    return password.encode()


def decode_bundle(data: bytes, password: str = "") -> DecodedBundle:
    """Decode a PKCS#12 archive.

    Args:
        data: The raw archive
        password: Archive password ('' for unprotected archives)

    Returns:
        The decoded leaf material and chain

    Raises:
        MalformedBundleError: If the archive cannot be parsed, lacks a key
            or certificate, or its key matches none of its certificates
        UnsupportedKeyTypeError: If the private key is not RSA
    """
    try:
        key, cert, additional = pkcs12.load_key_and_certificates(
            data, _password_bytes(password)
        )
    except ValueError as e:
        raise MalformedBundleError("failed to parse pkcs12") from e

    certs = ([cert] if cert is not None else []) + list(additional or [])
    if not certs:
        raise MalformedBundleError("pkcs12 bundle contains no certificates")
    if key is None:
        raise MalformedBundleError("pkcs12 bundle contains no private key")
    if not isinstance(key, rsa.RSAPrivateKey):
        raise UnsupportedKeyTypeError(
            f"failed to parse key as RSA private key, got {type(key).__name__}"
        )

    leaf = next((c for c in certs if matches_key(c, key)), None)
    if leaf is None:
        raise MalformedBundleError("private key matches no certificate in bundle")
    chain = order_chain(leaf, certs)

    return DecodedBundle(
        material=CertificateMaterial(certificate=leaf, private_key=key),
        chain=chain,
    )


def decode_secret_value(
    value: str,
    content_type,
    password: str = "",
) -> DecodedBundle:
    """Decode a base64 PKCS#12 secret as returned by the store.

    Args:
        value: Base64-encoded archive
        content_type: Content type reported by the store
        password: Archive password ('' for unprotected archives)

    Returns:
        The decoded leaf material and chain

    Raises:
        ContentTypeMismatchError: If the content type is not PKCS#12
        MalformedBundleError: If the value is not valid base64 or PKCS#12
    """
    if content_type != PKCS12_CONTENT_TYPE:
        raise ContentTypeMismatchError(content_type, PKCS12_CONTENT_TYPE)

    try:
        data = base64.b64decode(value or "", validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedBundleError("failed to base64-decode secret") from e

    return decode_bundle(data, password)


def encode_bundle(
    material: CertificateMaterial,
    chain=(),
    password: str = "",
) -> bytes:
    """Encode a certificate, its chain and key as a PKCS#12 archive.

    Args:
        material: Certificate and private key
        chain: Chain certificates ordered towards the root
        password: Archive password ('' leaves the archive unprotected)

    Returns:
        The archive bytes

    Raises:
        ValueError: If the material has no private key
    """
    if material.private_key is None:
        raise ValueError(f"certificate '{material.subject_cn}' has no private key")

    if password:
        encryption = BestAvailableEncryption(password.encode())
    else:
        encryption = NoEncryption()

    name = material.subject_cn.encode() or None
    return pkcs12.serialize_key_and_certificates(
        name,
        material.private_key,
        material.certificate,
        list(chain) or None,
        encryption,
    )


def encode_bundle_b64(
    material: CertificateMaterial,
    chain=(),
    password: str = "",
) -> str:
    """Encode a PKCS#12 archive as base64 text for upload."""
    return base64.b64encode(encode_bundle(material, chain, password)).decode()
