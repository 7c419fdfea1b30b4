"""
Certmanager MCP - mTLS certificate bootstrapping backed by Azure Key Vault.

This package mints self-signed certificate authorities, stores them in Azure
Key Vault, signs client and server certificates with them, and assembles
mutual-TLS configurations. The operations are also exposed as Model Context
Protocol (MCP) tools.
"""

__version__ = "0.1.0"
