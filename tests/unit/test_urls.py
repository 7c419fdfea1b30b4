"""Tests for Key Vault URL parsing."""

import pytest

from certmanager_mcp.error_handling import InvalidURLError
from certmanager_mcp.pki.urls import (
    SecretLocator,
    resolve_certificate_url,
    resolve_secret_url,
)


@pytest.mark.unit
class TestResolveSecretURL:
    """Tests for secret URL parsing."""

    def test_name_only(self):
        """Test a secret URL without a version."""
        locator = resolve_secret_url("https://vault.example/secrets/abc")

        assert locator.base_url == "https://vault.example"
        assert locator.name == "abc"
        assert locator.version == ""
        assert locator.kind == "secret"

    def test_with_version(self):
        """Test a secret URL with a version."""
        locator = resolve_secret_url("https://vault.example/secrets/abc/42")

        assert locator.base_url == "https://vault.example"
        assert locator.name == "abc"
        assert locator.version == "42"

    def test_key_vault_host(self):
        """Test a full Azure Key Vault URL."""
        locator = resolve_secret_url(
            "https://test-vault.vault.azure.net/secrets/abc/1234"
        )

        assert locator == SecretLocator(
            scheme="https",
            host="test-vault.vault.azure.net",
            kind="secret",
            name="abc",
            version="1234",
        )

    def test_trailing_slash_tolerated(self):
        """Test a single trailing slash after the name."""
        locator = resolve_secret_url("https://vault.example/secrets/abc/")
        assert locator.name == "abc"
        assert locator.version == ""

    def test_port_kept_in_base_url(self):
        """Test that a port is part of the base URL."""
        locator = resolve_secret_url("https://vault.example:8443/secrets/abc")
        assert locator.base_url == "https://vault.example:8443"

    @pytest.mark.parametrize("url", [
        "https://vault.example/secrets/",
        "https://vault.example/secrets",
        "https://vault.example/secrets/abc/42/extra",
        "https://vault.example/certificates/abc",
        "https://vault.example/",
        "vault.example/secrets/abc",
        "",
    ])
    def test_invalid(self, url):
        """Test malformed secret URLs are rejected."""
        with pytest.raises(InvalidURLError) as exc_info:
            resolve_secret_url(url)

        assert "/secrets/{secretName}(/{version})" in str(exc_info.value)


@pytest.mark.unit
class TestResolveCertificateURL:
    """Tests for certificate URL parsing."""

    def test_valid(self):
        """Test a certificate URL."""
        locator = resolve_certificate_url("https://vault.example/certificates/myca")

        assert locator.base_url == "https://vault.example"
        assert locator.name == "myca"
        assert locator.version == ""
        assert locator.kind == "certificate"

    @pytest.mark.parametrize("url", [
        "https://vault.example/certificates/",
        "https://vault.example/certificates/myca/v1",
        "https://vault.example/secrets/myca",
        "not a url",
    ])
    def test_invalid(self, url):
        """Test malformed certificate URLs are rejected."""
        with pytest.raises(InvalidURLError) as exc_info:
            resolve_certificate_url(url)

        assert "/certificates/{certName}" in str(exc_info.value)

    def test_invalid_url_is_value_error(self):
        """Test InvalidURLError can be caught as ValueError."""
        with pytest.raises(ValueError):
            resolve_certificate_url("https://vault.example/keys/x")
