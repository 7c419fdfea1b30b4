"""
Certificate tools for certmanager MCP.

Provides tools to download certificates from Key Vault, generate and upload
a CA, and sign certificates with a CA stored in Key Vault.
"""

import json
import logging
from typing import Optional

from mcp.types import TextContent

from ..server import mcp
from ..config import load_config
from ..error_handling import (
    CertManagerError,
    map_certmanager_error,
    parse_expiry,
    validate_alt_names,
    validate_ca_name_matches_url,
    validate_common_name,
    validate_timeout,
)
from ..operations import (
    generate_root_ca,
    issue_certificate,
    retrieve_certificate,
    upload_certificate,
)
from ..pki.artifacts import validate_output_dir, write_downloaded, write_signed

logger = logging.getLogger(__name__)


def _response(payload: dict) -> list[TextContent]:
    return [TextContent(type="text", text=json.dumps(payload, indent=2, default=str))]


@mcp.tool()
async def download_certificate(
    url: str,
    cert_password: str = "",
    out_dir: str = ".",
    timeout: Optional[float] = None,
) -> list[TextContent]:
    """Download a certificate and its key from Azure Key Vault.

    Writes {common name}.key (PEM private key) and {common name}.crt (PEM
    certificate followed by its chain) to the output directory. Existing
    files are left untouched.

    Args:
        url: Secret URL, e.g. https://myvault.vault.azure.net/secrets/mycert
        cert_password: Certificate password - leave blank if none
        out_dir: Output directory, defaults to current directory
        timeout: Timeout in seconds before giving up (default 10)

    Returns:
        Written file paths and certificate details.
    """
    try:
        if not url:
            raise ValueError("URL is required")
        out_path = validate_output_dir(out_dir)
        config = load_config()
        timeout = validate_timeout(timeout or config.timeout)

        retrieved = await retrieve_certificate(
            url, cert_password, timeout=timeout, config=config
        )
        files = write_downloaded(out_path, retrieved.material, retrieved.chain)

        return _response({
            "certificate": retrieved.material.describe(),
            "chain_length": len(retrieved.chain),
            "files": files,
        })

    except CertManagerError as e:
        return _response(map_certmanager_error(e, "certificate download"))

    except ValueError as e:
        return _response({
            "error": str(e),
            "hint": "Check the URL and output directory parameters",
        })

    except Exception:
        logger.exception("Certificate download failed")
        return _response({
            "error": "Failed to download certificate",
            "hint": "Check the server logs for details",
        })


@mcp.tool()
async def generate_ca_certificate(
    url: str,
    name: str,
    cert_password: str = "",
    expire_at: str = "",
    timeout: Optional[float] = None,
) -> list[TextContent]:
    """Generate a self-signed CA certificate and upload it to Azure Key Vault.

    The upload is refused if a certificate with the same name already exists.

    Args:
        url: Certificate URL to upload the result to, e.g. https://myvault.vault.azure.net/certificates/myca
        name: Certificate Authority (CA) name; must match the certificate name in the URL
        cert_password: CA certificate password - leave blank if none
        expire_at: RFC3339 date when the cert will expire. By default ten years from now.
        timeout: Timeout in seconds before giving up (default 10)

    Returns:
        Details of the uploaded CA certificate (never the private key).
    """
    try:
        if not url:
            raise ValueError("URL is required")
        validate_ca_name_matches_url(name, url)
        expiry = parse_expiry(expire_at)
        config = load_config()
        timeout = validate_timeout(timeout or config.timeout)

        ca = generate_root_ca(name, expiry, key_size=config.key_size)
        await upload_certificate(
            url, ca, [], cert_password, timeout=timeout, config=config
        )

        return _response({
            "uploaded": url,
            "certificate": ca.describe(),
        })

    except CertManagerError as e:
        return _response(map_certmanager_error(e, "CA generation"))

    except ValueError as e:
        return _response({
            "error": str(e),
            "hint": "Check the CA name, URL and expiry parameters",
        })

    except Exception:
        logger.exception("CA generation failed")
        return _response({
            "error": "Failed to generate CA certificate",
            "hint": "Check the server logs for details",
        })


@mcp.tool()
async def generate_signed_certificate(
    ca_url: str,
    common_name: str,
    ca_cert_password: str = "",
    domains: str = "",
    expire_at: str = "",
    out_dir: str = ".",
    timeout: Optional[float] = None,
) -> list[TextContent]:
    """Generate a certificate signed by a CA stored in Azure Key Vault.

    The certificate is valid for both client and server authentication.
    Writes {CA name}.crt, {common name}.crt (certificate followed by the
    intermediate chain) and {common name}.key to the output directory.

    Args:
        ca_url: URL to CA certificate secret, e.g. https://myvault.vault.azure.net/secrets/myca
        common_name: Hostname for a server, e.g. '*.dev.my.domain.com', and any id for a client, e.g. 'my-client'
        ca_cert_password: CA certificate password - leave blank if none
        domains: Comma-separated list of alternative domain names
        expire_at: RFC3339 date when the cert will expire. By default ten years from now.
        out_dir: Output directory, defaults to current directory
        timeout: Timeout in seconds before giving up (default 10)

    Returns:
        Written file paths and certificate details.
    """
    try:
        if not ca_url:
            raise ValueError("CA URL is required")
        common_name = validate_common_name(common_name)
        alt_names = validate_alt_names(domains)
        expiry = parse_expiry(expire_at)
        out_path = validate_output_dir(out_dir)
        config = load_config()
        timeout = validate_timeout(timeout or config.timeout)

        ca = await retrieve_certificate(
            ca_url, ca_cert_password, timeout=timeout, config=config
        )
        leaf = issue_certificate(
            ca.material.certificate,
            ca.material.private_key,
            common_name,
            alt_names,
            expiry,
            key_size=config.key_size,
        )
        files = write_signed(out_path, ca.material, leaf, ca.chain)

        return _response({
            "certificate": leaf.describe(),
            "issuer": ca.material.describe(),
            "files": files,
        })

    except CertManagerError as e:
        return _response(map_certmanager_error(e, "certificate signing"))

    except ValueError as e:
        return _response({
            "error": str(e),
            "hint": "Check the common name, domains, expiry and output directory parameters",
        })

    except Exception:
        logger.exception("Certificate signing failed")
        return _response({
            "error": "Failed to generate signed certificate",
            "hint": "Check the server logs for details",
        })
