"""
Azure Key Vault REST client.

Implements the secret store operations over HTTPS with httpx, using bearer
tokens from the configured credential provider.
"""

import logging
from typing import Optional
from urllib.parse import quote, urlsplit

import httpx

from ..config import CertManagerConfig, DEFAULT_API_VERSION, DEFAULT_VAULT_HOSTS
from ..error_handling.errors import (
    DeadlineExceededError,
    InvalidURLError,
    StoreRequestError,
)
from .base import SecretBundle
from .credentials import default_credential_provider

logger = logging.getLogger(__name__)


class KeyVaultClient:
    """Client for the Azure Key Vault secrets and certificates APIs."""

    def __init__(
        self,
        credential,
        api_version: str = DEFAULT_API_VERSION,
        vault_hosts: tuple = DEFAULT_VAULT_HOSTS,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the Key Vault client.

        Args:
            credential: Provider with an async ``get_token()`` method
            api_version: Key Vault REST API version
            vault_hosts: Host suffixes accepted as Key Vault endpoints
            timeout: Timeout for each HTTP request in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.credential = credential
        self.api_version = api_version
        self.vault_hosts = tuple(vault_hosts)
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_config(cls, config: CertManagerConfig) -> "KeyVaultClient":
        return cls(
            credential=default_credential_provider(config),
            api_version=config.api_version,
            vault_hosts=config.vault_hosts,
            timeout=config.timeout,
        )

    def _check_host(self, base_url: str) -> None:
        host = urlsplit(base_url).hostname or ""
        if not any(host == h or host.endswith("." + h) for h in self.vault_hosts):
            raise InvalidURLError(
                f"only azure key vault URLs are supported, got host '{host}'"
            )

    async def _authorization(self) -> dict[str, str]:
        # Fetched for every request, never kept on the client.
        token = await self.credential.get_token()
        return {"Authorization": f"Bearer {token}"}

    async def _request(
        self,
        method: str,
        base_url: str,
        path: str,
        json_body: Optional[dict] = None,
    ) -> httpx.Response:
        self._check_host(base_url)
        headers = await self._authorization()
        url = f"{base_url.rstrip('/')}{path}"

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                return await client.request(
                    method,
                    url,
                    params={"api-version": self.api_version},
                    headers=headers,
                    json=json_body,
                )
            except httpx.TimeoutException as e:
                raise DeadlineExceededError(f"request to {base_url} timed out") from e
            except httpx.HTTPError as e:
                raise StoreRequestError(f"request to {base_url} failed") from e

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        try:
            message = response.json()["error"]["message"]
        except (ValueError, KeyError, TypeError):
            message = response.reason_phrase
        raise StoreRequestError(
            f"{action} failed with status {response.status_code}: {message}",
            status_code=response.status_code,
        )

    async def get_secret(self, base_url: str, name: str, version: str = "") -> SecretBundle:
        """Fetch a secret version (the latest when ``version`` is empty).

        Args:
            base_url: Vault URL, e.g. https://myvault.vault.azure.net
            name: Secret name
            version: Secret version

        Returns:
            The secret bundle
        """
        path = f"/secrets/{quote(name, safe='')}"
        if version:
            path += f"/{quote(version, safe='')}"

        response = await self._request("GET", base_url, path)
        self._raise_for_status(response, f"get secret '{name}'")

        body = response.json()
        return SecretBundle(
            value=body.get("value", ""),
            content_type=body.get("contentType"),
            id=body.get("id"),
        )

    async def certificate_exists(self, base_url: str, name: str) -> bool:
        """Check whether a certificate exists.

        Args:
            base_url: Vault URL
            name: Certificate name

        Returns:
            True if found, False on 404
        """
        response = await self._request(
            "GET", base_url, f"/certificates/{quote(name, safe='')}"
        )
        if response.status_code == 404:
            return False
        self._raise_for_status(response, f"get certificate '{name}'")
        return True

    async def import_certificate(
        self,
        base_url: str,
        name: str,
        payload: str,
        password: str = "",
    ) -> None:
        """Import a base64 PKCS#12 certificate.

        Args:
            base_url: Vault URL
            name: Certificate name
            payload: Base64-encoded PKCS#12 archive
            password: Archive password
        """
        body = {"value": payload, "pwd": password}
        response = await self._request(
            "POST", base_url, f"/certificates/{quote(name, safe='')}/import", body
        )
        self._raise_for_status(response, f"import certificate '{name}'")
        logger.info("Imported certificate '%s' into %s", name, base_url)
