"""
TLS configuration assembly for mTLS.

Builds ssl.SSLContext objects that present a leaf certificate chain and trust
only the CA that issued it.
"""

import os
import ssl
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Optional

from cryptography import x509

from .material import CertificateMaterial, cert_to_pem, certs_to_pem


@dataclass
class TLSConfig:
    """An assembled TLS configuration.

    Attributes:
        context: The configured SSL context
        certificates: Presented chain, leaf first, root never included
        trust_pool: CA certificates trusted when verifying the peer
        server_name: Expected server name (client configurations only)
        client_auth_required: Whether peers must present a client certificate
        alt_names: Additional names the presented certificate was issued for
            (server configurations only)
    """
    context: ssl.SSLContext
    certificates: list[x509.Certificate]
    trust_pool: list[x509.Certificate]
    server_name: Optional[str] = None
    client_auth_required: bool = False
    alt_names: list[str] = field(default_factory=list)

    @property
    def server_side(self) -> bool:
        return self.context.protocol == ssl.PROTOCOL_TLS_SERVER

    def wrap_socket(self, sock, **kwargs) -> ssl.SSLSocket:
        """Wrap a socket, passing the expected server name for clients."""
        if self.server_side:
            return self.context.wrap_socket(sock, server_side=True, **kwargs)
        return self.context.wrap_socket(sock, server_hostname=self.server_name, **kwargs)

    def wrap_bio(self, incoming: ssl.MemoryBIO, outgoing: ssl.MemoryBIO) -> ssl.SSLObject:
        """Wrap a pair of memory BIOs, for use with an event loop or tests."""
        if self.server_side:
            return self.context.wrap_bio(incoming, outgoing, server_side=True)
        return self.context.wrap_bio(incoming, outgoing, server_hostname=self.server_name)


def presented_chain(
    leaf: CertificateMaterial,
    ca: CertificateMaterial,
    ca_chain=(),
) -> list[x509.Certificate]:
    """Build the certificate list presented during the handshake.

    Args:
        leaf: The issued leaf certificate
        ca: The CA that issued the leaf
        ca_chain: The CA's own chain ordered towards the root (empty when the
            CA is a root)

    Returns:
        [leaf] when the CA is a root, otherwise [leaf, ca, intermediates...]
        with the root left out
    """
    certs = [leaf.certificate]
    ca_chain = list(ca_chain)
    if ca_chain:
        certs.append(ca.certificate)
        certs.extend(ca_chain[:-1])
    return certs


@contextmanager
def _temp_key_pair_files(chain_pem: str, key_pem: str):
    """Create temporary files for a certificate chain and key.

    ssl.SSLContext.load_cert_chain only accepts file paths, so the PEM
    content is written to private temp files that are removed afterwards.
    """
    temp_files = []
    try:
        cert_file = tempfile.NamedTemporaryFile(
            mode="w", suffix=".pem", delete=False
        )
        temp_files.append(cert_file.name)
        cert_file.write(chain_pem)
        cert_file.close()

        key_file = tempfile.NamedTemporaryFile(
            mode="w", suffix=".key", delete=False
        )
        temp_files.append(key_file.name)
        key_file.write(key_pem)
        key_file.close()

        yield cert_file.name, key_file.name
    finally:
        for f in temp_files:
            try:
                os.unlink(f)
            except FileNotFoundError:
                pass


def _load_material(
    context: ssl.SSLContext,
    ca: CertificateMaterial,
    certs: list[x509.Certificate],
    leaf: CertificateMaterial,
) -> None:
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    # The issuing CA may be an intermediate; it is the trust anchor either way.
    context.verify_flags |= ssl.VERIFY_X509_PARTIAL_CHAIN
    context.load_verify_locations(cadata=cert_to_pem(ca.certificate))
    with _temp_key_pair_files(certs_to_pem(certs), leaf.key_pem()) as (cert_path, key_path):
        context.load_cert_chain(certfile=cert_path, keyfile=key_path)


def client_config(
    ca: CertificateMaterial,
    leaf: CertificateMaterial,
    server_name: str,
    ca_chain=(),
) -> TLSConfig:
    """Assemble a client-side mTLS configuration.

    The server certificate is verified against a trust pool holding only the
    CA certificate, and its name must match ``server_name``.

    Args:
        ca: The CA that issued the leaf (and the server certificate)
        leaf: Client certificate and key
        server_name: Expected server name for hostname verification
        ca_chain: The CA's own chain ordered towards the root

    Returns:
        The client TLS configuration
    """
    certs = presented_chain(leaf, ca, ca_chain)

    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    context.check_hostname = True
    context.verify_mode = ssl.CERT_REQUIRED
    _load_material(context, ca, certs, leaf)

    return TLSConfig(
        context=context,
        certificates=certs,
        trust_pool=[ca.certificate],
        server_name=server_name,
        client_auth_required=False,
    )


def server_config(
    ca: CertificateMaterial,
    leaf: CertificateMaterial,
    alt_names=(),
    ca_chain=(),
) -> TLSConfig:
    """Assemble a server-side mTLS configuration.

    Clients must present a certificate that verifies against a pool holding
    only the CA certificate.

    Args:
        ca: The CA that issued the leaf (and the client certificates)
        leaf: Server certificate and key
        alt_names: Alternative names the server certificate was issued for
        ca_chain: The CA's own chain ordered towards the root

    Returns:
        The server TLS configuration
    """
    certs = presented_chain(leaf, ca, ca_chain)

    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.verify_mode = ssl.CERT_REQUIRED
    _load_material(context, ca, certs, leaf)

    return TLSConfig(
        context=context,
        certificates=certs,
        trust_pool=[ca.certificate],
        client_auth_required=True,
        alt_names=list(alt_names or []),
    )
