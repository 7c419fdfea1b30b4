"""
Certificate operations.

High-level workflows combining the secret store, the PKCS#12 codec, the
certificate authority and TLS assembly. Each call is independent: nothing
is cached between calls.
"""

import asyncio
import logging
from datetime import datetime
from typing import Iterable, Optional

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import rsa

from .config import CertManagerConfig, load_config
from .error_handling.errors import (
    DeadlineExceededError,
    InvalidURLError,
    AlreadyExistsError,
    MalformedBundleError,
    StoreRequestError,
    UnauthenticatedError,
)
from .pki import authority, tls
from .pki.bundle import DecodedBundle, decode_secret_value, encode_bundle_b64
from .pki.material import CertificateMaterial
from .pki.urls import resolve_certificate_url, resolve_secret_url
from .store.keyvault import KeyVaultClient

logger = logging.getLogger(__name__)


def _resolve_store(store, config: Optional[CertManagerConfig]):
    if store is not None:
        return store
    return KeyVaultClient.from_config(config or load_config())


def _resolve_timeout(timeout: Optional[float], config: Optional[CertManagerConfig]) -> float:
    if timeout is not None:
        return timeout
    if config is not None:
        return config.timeout
    return load_config().timeout


_STORE_ERRORS = (StoreRequestError, UnauthenticatedError, InvalidURLError)


def _staged(error, message: str):
    """Re-create a store error under the stage message, keeping its details."""
    if isinstance(error, StoreRequestError):
        return StoreRequestError(message, error.status_code)
    if isinstance(error, UnauthenticatedError):
        return UnauthenticatedError(message, error.failures)
    return InvalidURLError(message)


async def _with_deadline(coro, timeout: float, action: str):
    try:
        return await asyncio.wait_for(coro, timeout)
    except asyncio.TimeoutError as e:
        raise DeadlineExceededError(
            f"{action} did not complete within {timeout:g} seconds"
        ) from e


async def retrieve_certificate(
    url: str,
    password: str = "",
    *,
    store=None,
    timeout: Optional[float] = None,
    config: Optional[CertManagerConfig] = None,
) -> DecodedBundle:
    """Retrieve a certificate, its chain and key from a PKCS#12 secret.

    Args:
        url: Secret URL, e.g. https://myvault.vault.azure.net/secrets/myca
        password: Certificate password ('' if none)
        store: Secret store client (defaults to a Key Vault client)
        timeout: Deadline for the store round trip in seconds
        config: Configuration used for defaults

    Returns:
        The decoded certificate material and chain

    Raises:
        InvalidURLError: If the URL is not a secret URL
        DeadlineExceededError: If the store did not answer in time
        UnauthenticatedError: If no credential provider succeeded
        StoreRequestError: If the store rejected the request
        ContentTypeMismatchError: If the secret is not PKCS#12
        MalformedBundleError: If the secret cannot be decoded
    """
    try:
        locator = resolve_secret_url(url)
    except InvalidURLError as e:
        raise InvalidURLError("failed to parse secret URL") from e

    timeout = _resolve_timeout(timeout, config)
    store = _resolve_store(store, config)

    try:
        bundle = await _with_deadline(
            store.get_secret(locator.base_url, locator.name, locator.version),
            timeout,
            "secret retrieval",
        )
    except _STORE_ERRORS as e:
        raise _staged(e, "failed to retrieve secret") from e

    try:
        decoded = decode_secret_value(bundle.value, bundle.content_type, password)
    except MalformedBundleError as e:
        raise type(e)("failed to decode certificate bundle") from e

    logger.info(
        "Retrieved certificate '%s' with %d chain certificate(s)",
        decoded.material.subject_cn, len(decoded.chain),
    )
    return decoded


async def upload_certificate(
    url: str,
    material: CertificateMaterial,
    chain: Iterable[x509.Certificate] = (),
    password: str = "",
    *,
    store=None,
    timeout: Optional[float] = None,
    config: Optional[CertManagerConfig] = None,
) -> None:
    """Upload a certificate, its chain and key as a new store certificate.

    Existing certificates are never overwritten. The existence check and the
    upload are two separate requests, so a concurrent upload of the same
    name between them is not prevented.

    Args:
        url: Certificate URL, e.g. https://myvault.vault.azure.net/certificates/myca
        material: Certificate and private key
        chain: Chain certificates ordered towards the root
        password: Password protecting the uploaded archive
        store: Secret store client (defaults to a Key Vault client)
        timeout: Deadline for the store round trips in seconds
        config: Configuration used for defaults

    Raises:
        InvalidURLError: If the URL is not a certificate URL
        AlreadyExistsError: If a certificate with the same name exists
        DeadlineExceededError: If the store did not answer in time
        UnauthenticatedError: If no credential provider succeeded
        StoreRequestError: If the store rejected a request
    """
    try:
        locator = resolve_certificate_url(url)
    except InvalidURLError as e:
        raise InvalidURLError("failed to parse certificate URL") from e

    timeout = _resolve_timeout(timeout, config)
    store = _resolve_store(store, config)

    async def _upload():
        try:
            exists = await store.certificate_exists(locator.base_url, locator.name)
        except _STORE_ERRORS as e:
            raise _staged(
                e, "failed to check whether the certificate already exists"
            ) from e
        if exists:
            raise AlreadyExistsError(locator.name)

        try:
            payload = encode_bundle_b64(material, list(chain), password)
        except (ValueError, TypeError) as e:
            raise MalformedBundleError("failed to encode pkcs12 certificate") from e

        try:
            await store.import_certificate(locator.base_url, locator.name, payload, password)
        except _STORE_ERRORS as e:
            raise _staged(e, "failed to upload certificate") from e

    await _with_deadline(_upload(), timeout, "certificate upload")
    logger.info("Uploaded certificate '%s' to %s", locator.name, locator.base_url)


def issue_certificate(
    ca_cert: x509.Certificate,
    ca_key: rsa.RSAPrivateKey,
    common_name: str,
    alt_names: Iterable[str] = (),
    not_after: Optional[datetime] = None,
    key_size: int = authority.DEFAULT_KEY_SIZE,
) -> CertificateMaterial:
    """Issue a leaf certificate signed by a CA certificate and key.

    Raises:
        ValueError: If ``not_after`` is missing or the common name is empty
        SigningError: If key generation or signing fails
    """
    if not_after is None:
        raise ValueError("not_after is required")
    ca = CertificateMaterial(certificate=ca_cert, private_key=ca_key)
    return authority.issue_leaf(ca, common_name, alt_names, not_after, key_size=key_size)


def generate_root_ca(
    name: str,
    not_after: datetime,
    key_size: int = authority.DEFAULT_KEY_SIZE,
) -> CertificateMaterial:
    """Generate a self-signed root CA certificate and key.

    Raises:
        ValueError: If the name is empty, the expiry has passed or the key
            size is too small
        SigningError: If key generation or signing fails
    """
    return authority.generate_root_ca(name, not_after, key_size=key_size)


async def build_client_tls_config(
    ca_url: str,
    ca_password: str,
    client_name: str,
    server_name: str,
    not_after: datetime,
    *,
    store=None,
    timeout: Optional[float] = None,
    config: Optional[CertManagerConfig] = None,
) -> tls.TLSConfig:
    """Fetch a CA, issue a client certificate and assemble a client TLS configuration.

    Args:
        ca_url: Secret URL of the CA bundle
        ca_password: CA bundle password ('' if none)
        client_name: Common name of the client certificate
        server_name: Expected name of the server
        not_after: Expiry of the client certificate
        store: Secret store client (defaults to a Key Vault client)
        timeout: Deadline for the store round trip in seconds
        config: Configuration used for defaults

    Returns:
        The client TLS configuration
    """
    ca = await retrieve_certificate(
        ca_url, ca_password, store=store, timeout=timeout, config=config
    )
    key_size = config.key_size if config else authority.DEFAULT_KEY_SIZE
    leaf = authority.issue_leaf(ca.material, client_name, [], not_after, key_size=key_size)
    return tls.client_config(ca.material, leaf, server_name, ca.chain)


async def build_server_tls_config(
    ca_url: str,
    ca_password: str,
    hostname: str,
    alt_names: Iterable[str],
    not_after: datetime,
    *,
    store=None,
    timeout: Optional[float] = None,
    config: Optional[CertManagerConfig] = None,
) -> tls.TLSConfig:
    """Fetch a CA, issue a server certificate and assemble a server TLS configuration.

    The returned configuration requires and verifies client certificates.

    Args:
        ca_url: Secret URL of the CA bundle
        ca_password: CA bundle password ('' if none)
        hostname: Common name of the server certificate
        alt_names: Additional DNS names or IP addresses of the server
        not_after: Expiry of the server certificate
        store: Secret store client (defaults to a Key Vault client)
        timeout: Deadline for the store round trip in seconds
        config: Configuration used for defaults

    Returns:
        The server TLS configuration
    """
    ca = await retrieve_certificate(
        ca_url, ca_password, store=store, timeout=timeout, config=config
    )
    alt_names = list(alt_names or [])
    key_size = config.key_size if config else authority.DEFAULT_KEY_SIZE
    leaf = authority.issue_leaf(ca.material, hostname, alt_names, not_after, key_size=key_size)
    return tls.server_config(ca.material, leaf, alt_names, ca.chain)
