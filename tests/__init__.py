"""Tests for Certmanager MCP.

Test Structure:
    tests/
    ├── conftest.py          # Shared pytest fixtures
    ├── unit/                # Unit tests (no network, no Azure credentials)
    │   ├── test_urls.py
    │   ├── test_authority.py
    │   ├── test_bundle.py
    │   ├── test_tls.py
    │   ├── test_operations.py
    │   ├── test_keyvault.py
    │   ├── test_credentials.py
    │   ├── test_artifacts.py
    │   ├── test_config.py
    │   ├── test_error_handling.py
    │   └── test_tools.py
    └── mocks/               # Mock implementations
        ├── mock_secret_store.py
        └── pki_factory.py

Usage:
    # Run all tests
    pytest

    # Run only unit tests
    pytest -m unit

    # Run with verbose output
    pytest -v
"""
