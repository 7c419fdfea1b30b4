"""Shared pytest fixtures for certmanager-mcp tests.

This module provides fixtures for unit tests. Nothing here needs network
access or Azure credentials: the secret store is simulated in memory.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator

import pytest

from certmanager_mcp.pki import generate_root_ca, issue_leaf
from certmanager_mcp.pki.material import CertificateMaterial
from tests.mocks import MockSecretStore, make_intermediate

VAULT_URL = "https://test-vault.vault.azure.net"

ENV_VARS = (
    "CERTMANAGER_CONFIG",
    "CERTMANAGER_TIMEOUT",
    "CERTMANAGER_KEY_SIZE",
    "CERTMANAGER_API_VERSION",
    "CERTMANAGER_VAULT_HOSTS",
    "CERTMANAGER_AZ_COMMAND",
    "AZURE_CLIENT_ID",
    "AZURE_TENANT_ID",
    "AZURE_CLIENT_SECRET",
)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "slow: Long-running tests")


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Remove configuration variables so every test starts from defaults."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def expiry() -> datetime:
    """An expiry one year from now, truncated to whole seconds."""
    return (datetime.now(timezone.utc) + timedelta(days=365)).replace(microsecond=0)


@pytest.fixture(scope="session")
def root_ca() -> CertificateMaterial:
    """A self-signed root CA shared across the test session."""
    not_after = (datetime.now(timezone.utc) + timedelta(days=3650)).replace(microsecond=0)
    return generate_root_ca("test-root-ca", not_after)


@pytest.fixture(scope="session")
def intermediate_chain(root_ca) -> list[CertificateMaterial]:
    """Two intermediate CAs below the root: [issuing, middle]."""
    middle = make_intermediate(root_ca, "test-middle-ca")
    issuing = make_intermediate(middle, "test-issuing-ca")
    return [issuing, middle]


@pytest.fixture(scope="session")
def server_leaf(root_ca) -> CertificateMaterial:
    """A server certificate issued by the root CA."""
    not_after = (datetime.now(timezone.utc) + timedelta(days=30)).replace(microsecond=0)
    return issue_leaf(root_ca, "svc.internal", ["svc.internal", "alt.svc"], not_after)


@pytest.fixture
def mock_store() -> MockSecretStore:
    """An empty in-memory secret store."""
    return MockSecretStore()


@pytest.fixture
def temp_certs_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """Provide an isolated directory for certificate artifacts.

    Yields:
        Path to a temporary certificates directory
    """
    certs_dir = tmp_path / "certs"
    certs_dir.mkdir()
    yield certs_dir
