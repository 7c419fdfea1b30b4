"""
Secret store access.

Provides the store interface, the Azure Key Vault client and its
credential providers.
"""

from .base import SecretBundle, SecretStoreClient
from .credentials import (
    CredentialError,
    AzureCliCredentialProvider,
    ServicePrincipalCredentialProvider,
    ChainedCredentialProvider,
    default_credential_provider,
)
from .keyvault import KeyVaultClient

__all__ = [
    "SecretBundle",
    "SecretStoreClient",
    "CredentialError",
    "AzureCliCredentialProvider",
    "ServicePrincipalCredentialProvider",
    "ChainedCredentialProvider",
    "default_credential_provider",
    "KeyVaultClient",
]
