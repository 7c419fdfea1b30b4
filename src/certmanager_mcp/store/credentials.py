"""
Access token providers for Azure Key Vault.

Providers are tried in order: the Azure CLI login session first, then a
service principal. The first provider that returns a token wins.
"""

import asyncio
import json
import logging
from typing import Optional, Protocol

import httpx

from ..config import (
    DEFAULT_AUTHORITY_HOST,
    DEFAULT_VAULT_RESOURCE,
    ServicePrincipalSettings,
)
from ..error_handling.errors import UnauthenticatedError

logger = logging.getLogger(__name__)


class CredentialError(Exception):
    """A single credential provider could not produce a token."""


class CredentialProvider(Protocol):
    name: str

    async def get_token(self) -> str:
        ...


async def _terminate(proc) -> None:
    try:
        proc.kill()
    except ProcessLookupError:
        pass
    await proc.wait()


class AzureCliCredentialProvider:
    """Access tokens from the local Azure CLI login session."""

    name = "azure-cli"

    def __init__(
        self,
        resource: str = DEFAULT_VAULT_RESOURCE,
        az_command: str = "az",
        timeout: float = 10.0,
    ):
        self.resource = resource
        self.az_command = az_command
        self.timeout = timeout

    async def get_token(self) -> str:
        try:
            proc = await asyncio.create_subprocess_exec(
                self.az_command, "account", "get-access-token",
                "--resource", self.resource,
                "--output", "json",
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise CredentialError("Azure CLI not found") from e
        except OSError as e:
            raise CredentialError("failed to run Azure CLI") from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), self.timeout)
        except asyncio.TimeoutError as e:
            raise CredentialError("Azure CLI did not respond in time") from e
        finally:
            # Also reached when the caller's deadline cancels this task.
            if proc.returncode is None:
                await _terminate(proc)

        if proc.returncode != 0:
            message = stderr.decode(errors="replace").strip() or "not logged in"
            raise CredentialError(f"Azure CLI failed: {message}")

        try:
            token = json.loads(stdout)["accessToken"]
        except (ValueError, KeyError, TypeError) as e:
            raise CredentialError("Azure CLI returned no access token") from e

        return token


class ServicePrincipalCredentialProvider:
    """Access tokens from an Azure AD service principal (client credentials grant)."""

    name = "service-principal"

    def __init__(
        self,
        settings: ServicePrincipalSettings,
        resource: str = DEFAULT_VAULT_RESOURCE,
        authority_host: str = DEFAULT_AUTHORITY_HOST,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.resource = resource
        self.authority_host = authority_host.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def get_token(self) -> str:
        missing = self.settings.missing()
        if missing:
            raise CredentialError(
                f"env var {missing[0]} required when not logged into Azure CLI"
            )

        url = f"{self.authority_host}/{self.settings.tenant_id}/oauth2/v2.0/token"
        data = {
            "grant_type": "client_credentials",
            "client_id": self.settings.client_id,
            "client_secret": self.settings.client_secret,
            "scope": f"{self.resource}/.default",
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(url, data=data)
            except httpx.HTTPError as e:
                raise CredentialError("token request failed") from e

        if response.status_code != 200:
            raise CredentialError(
                f"token request rejected with status {response.status_code}"
            )

        try:
            return response.json()["access_token"]
        except (ValueError, KeyError) as e:
            raise CredentialError("token response has no access_token") from e


class ChainedCredentialProvider:
    """Tries providers in order and returns the first token obtained.

    Failures are collected and only reported, as UnauthenticatedError, when
    every provider has failed.
    """

    name = "chained"

    def __init__(self, providers: list):
        self.providers = list(providers)

    async def get_token(self) -> str:
        failures = []
        for provider in self.providers:
            try:
                token = await provider.get_token()
            except CredentialError as e:
                logger.debug("Credential provider %s failed: %s", provider.name, e)
                failures.append((provider.name, e))
                continue
            logger.debug("Authenticated with %s", provider.name)
            return token

        raise UnauthenticatedError("failed to authenticate against Azure", failures)


def default_credential_provider(config) -> ChainedCredentialProvider:
    """Build the default provider chain from a CertManagerConfig."""
    return ChainedCredentialProvider([
        AzureCliCredentialProvider(
            resource=config.vault_resource,
            az_command=config.az_command,
            timeout=config.timeout,
        ),
        ServicePrincipalCredentialProvider(
            settings=config.service_principal,
            resource=config.vault_resource,
            authority_host=config.authority_host,
            timeout=config.timeout,
        ),
    ])
