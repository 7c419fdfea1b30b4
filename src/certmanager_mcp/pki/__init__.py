"""
PKI components for mTLS bootstrapping.

Provides certificate generation and signing, PKCS#12 bundle encoding,
Key Vault URL parsing, TLS configuration assembly and PEM artifact writing.
"""

from .material import CertificateMaterial, order_chain
from .urls import SecretLocator, resolve_secret_url, resolve_certificate_url
from .authority import generate_root_ca, issue_leaf
from .bundle import (
    DecodedBundle,
    PKCS12_CONTENT_TYPE,
    decode_bundle,
    decode_secret_value,
    encode_bundle,
    encode_bundle_b64,
)
from .tls import TLSConfig, client_config, server_config, presented_chain

__all__ = [
    "CertificateMaterial",
    "order_chain",
    "SecretLocator",
    "resolve_secret_url",
    "resolve_certificate_url",
    "generate_root_ca",
    "issue_leaf",
    "DecodedBundle",
    "PKCS12_CONTENT_TYPE",
    "decode_bundle",
    "decode_secret_value",
    "encode_bundle",
    "encode_bundle_b64",
    "TLSConfig",
    "client_config",
    "server_config",
    "presented_chain",
]
