"""
Configuration handling for certmanager MCP.

Settings are loaded from a YAML file (CERTMANAGER_CONFIG) or from
environment variables.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

import yaml

DEFAULT_TIMEOUT = 10.0
DEFAULT_KEY_SIZE = 2048
DEFAULT_API_VERSION = "7.0"
DEFAULT_VAULT_RESOURCE = "https://vault.azure.net"
DEFAULT_AUTHORITY_HOST = "https://login.microsoftonline.com"
DEFAULT_VAULT_HOSTS = ("vault.azure.net",)

SERVICE_PRINCIPAL_ENV_VARS = ("AZURE_CLIENT_ID", "AZURE_TENANT_ID", "AZURE_CLIENT_SECRET")


@dataclass(frozen=True)
class ServicePrincipalSettings:
    """Azure AD service principal credentials.

    All three values are required together.
    """
    client_id: str = ""
    tenant_id: str = ""
    client_secret: str = ""

    def missing(self) -> list[str]:
        """Names of the environment variables whose values are missing."""
        values = (self.client_id, self.tenant_id, self.client_secret)
        return [
            name for name, value in zip(SERVICE_PRINCIPAL_ENV_VARS, values)
            if not value
        ]

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServicePrincipalSettings":
        environ = os.environ if environ is None else environ
        return cls(
            client_id=environ.get("AZURE_CLIENT_ID", ""),
            tenant_id=environ.get("AZURE_TENANT_ID", ""),
            client_secret=environ.get("AZURE_CLIENT_SECRET", ""),
        )


@dataclass
class CertManagerConfig:
    """Configuration for certificate operations.

    Attributes:
        timeout: Seconds allowed for each Key Vault round trip
        key_size: RSA modulus size for generated keys
        api_version: Key Vault REST API version
        vault_resource: Resource (audience) of Key Vault access tokens
        authority_host: Azure AD authority for service principal logins
        vault_hosts: Host suffixes accepted as Key Vault endpoints
        az_command: Azure CLI executable used for session tokens
        service_principal: Service principal credentials
    """
    timeout: float = DEFAULT_TIMEOUT
    key_size: int = DEFAULT_KEY_SIZE
    api_version: str = DEFAULT_API_VERSION
    vault_resource: str = DEFAULT_VAULT_RESOURCE
    authority_host: str = DEFAULT_AUTHORITY_HOST
    vault_hosts: tuple = DEFAULT_VAULT_HOSTS
    az_command: str = "az"
    service_principal: ServicePrincipalSettings = field(default_factory=ServicePrincipalSettings)

    @classmethod
    def from_config_file(cls, path: str) -> "CertManagerConfig":
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file

        Returns:
            The loaded configuration
        """
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}

        sp = data.get("service_principal") or {}
        hosts = data.get("vault_hosts") or DEFAULT_VAULT_HOSTS
        if isinstance(hosts, str):
            hosts = [hosts]

        return cls(
            timeout=float(data.get("timeout", DEFAULT_TIMEOUT)),
            key_size=int(data.get("key_size", DEFAULT_KEY_SIZE)),
            api_version=str(data.get("api_version", DEFAULT_API_VERSION)),
            vault_resource=data.get("vault_resource", DEFAULT_VAULT_RESOURCE),
            authority_host=data.get("authority_host", DEFAULT_AUTHORITY_HOST),
            vault_hosts=tuple(hosts),
            az_command=data.get("az_command", "az"),
            service_principal=ServicePrincipalSettings(
                client_id=sp.get("client_id", ""),
                tenant_id=sp.get("tenant_id", ""),
                client_secret=sp.get("client_secret", ""),
            ),
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CertManagerConfig":
        """Load configuration from environment variables.

        Environment variables:
            CERTMANAGER_TIMEOUT: Key Vault round-trip timeout in seconds
            CERTMANAGER_KEY_SIZE: RSA key size for generated keys
            CERTMANAGER_API_VERSION: Key Vault REST API version
            CERTMANAGER_VAULT_HOSTS: Comma-separated accepted host suffixes
            CERTMANAGER_AZ_COMMAND: Azure CLI executable
            AZURE_CLIENT_ID, AZURE_TENANT_ID, AZURE_CLIENT_SECRET:
                Service principal credentials

        Returns:
            The loaded configuration
        """
        environ = os.environ if environ is None else environ

        hosts = environ.get("CERTMANAGER_VAULT_HOSTS", "")
        vault_hosts = tuple(h.strip() for h in hosts.split(",") if h.strip())

        return cls(
            timeout=float(environ.get("CERTMANAGER_TIMEOUT", DEFAULT_TIMEOUT)),
            key_size=int(environ.get("CERTMANAGER_KEY_SIZE", DEFAULT_KEY_SIZE)),
            api_version=environ.get("CERTMANAGER_API_VERSION", DEFAULT_API_VERSION),
            vault_hosts=vault_hosts or DEFAULT_VAULT_HOSTS,
            az_command=environ.get("CERTMANAGER_AZ_COMMAND", "az"),
            service_principal=ServicePrincipalSettings.from_env(environ),
        )

    def validate(self) -> list[str]:
        """Validate the configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []
        if self.timeout <= 0:
            errors.append("timeout must be positive")
        if self.key_size < 2048:
            errors.append("key_size must be at least 2048 bits")
        if not self.vault_hosts:
            errors.append("at least one Key Vault host suffix is required")
        if not self.api_version:
            errors.append("api_version is required")
        return errors


def load_config() -> CertManagerConfig:
    """Load configuration from the file named by CERTMANAGER_CONFIG or the environment.

    Returns:
        The loaded configuration

    Raises:
        ValueError: If the configuration is invalid
    """
    config_path = os.environ.get("CERTMANAGER_CONFIG")
    if config_path:
        config = CertManagerConfig.from_config_file(config_path)
    else:
        config = CertManagerConfig.from_env()

    errors = config.validate()
    if errors:
        raise ValueError(f"Invalid configuration: {'; '.join(errors)}")

    return config
