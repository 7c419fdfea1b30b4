"""Mock implementations for certmanager-mcp tests.

Provides mock objects for:
- Azure Key Vault (in-memory secret store)
- Test-only certificate builders
"""

from .mock_secret_store import MockSecretStore, StoredCertificate
from .pki_factory import make_intermediate, make_ec_self_signed, one_year_from_now

__all__ = [
    "MockSecretStore",
    "StoredCertificate",
    "make_intermediate",
    "make_ec_self_signed",
    "one_year_from_now",
]
