"""
Secret store interface.

Defines the operations certificate workflows need from a secret store.
"""

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable


@dataclass
class SecretBundle:
    """A secret as returned by the store.

    Attributes:
        value: Secret value (base64 PKCS#12 for certificates)
        content_type: Content type recorded with the secret
        id: Store identifier of the secret version
    """
    value: str
    content_type: Optional[str] = None
    id: Optional[str] = None


@runtime_checkable
class SecretStoreClient(Protocol):
    """Operations on a URL-addressed secret store."""

    async def get_secret(self, base_url: str, name: str, version: str = "") -> SecretBundle:
        """Fetch a secret (the latest version when ``version`` is empty)."""
        ...

    async def certificate_exists(self, base_url: str, name: str) -> bool:
        """Check whether a certificate with this name exists."""
        ...

    async def import_certificate(
        self,
        base_url: str,
        name: str,
        payload: str,
        password: str = "",
    ) -> None:
        """Import a base64 PKCS#12 certificate under a new name."""
        ...
