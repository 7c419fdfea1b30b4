"""
Key Vault URL parsing.

Splits secret and certificate URLs into a base URL and resource name.
"""

import re
from dataclasses import dataclass
from urllib.parse import urlsplit

from ..error_handling.errors import InvalidURLError

SECRET_URL_FORMAT = "https://{baseURL}/secrets/{secretName}(/{version})"
CERTIFICATE_URL_FORMAT = "https://{baseURL}/certificates/{certName}"

_SECRET_PATH = re.compile(r"^/secrets/(?P<name>[^/]+)(?:/(?P<version>[^/]+))?/?$")
_CERTIFICATE_PATH = re.compile(r"^/certificates/(?P<name>[^/]+)/?$")


@dataclass(frozen=True)
class SecretLocator:
    """Location of a resource in a secret store.

    Attributes:
        scheme: URL scheme (normally 'https')
        host: Store host, including any port
        kind: 'secret' or 'certificate'
        name: Resource name
        version: Secret version ('' for the latest)
    """
    scheme: str
    host: str
    kind: str
    name: str
    version: str = ""

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}"


def resolve_secret_url(url: str) -> SecretLocator:
    """Parse a secret URL.

    Args:
        url: URL of the form https://{vault}/secrets/{name}[/{version}]

    Returns:
        The secret's locator

    Raises:
        InvalidURLError: If the URL does not match the secret format
    """
    return _resolve(url, _SECRET_PATH, "secret", SECRET_URL_FORMAT)


def resolve_certificate_url(url: str) -> SecretLocator:
    """Parse a certificate URL.

    Args:
        url: URL of the form https://{vault}/certificates/{name}

    Returns:
        The certificate's locator (version is always empty)

    Raises:
        InvalidURLError: If the URL does not match the certificate format
    """
    return _resolve(url, _CERTIFICATE_PATH, "certificate", CERTIFICATE_URL_FORMAT)


def _resolve(url: str, pattern: re.Pattern, kind: str, expected: str) -> SecretLocator:
    message = f"invalid key vault {kind} URL, expected format: {expected}"

    try:
        parts = urlsplit(url or "")
    except ValueError as e:
        raise InvalidURLError(message) from e

    if not parts.scheme or not parts.netloc:
        raise InvalidURLError(message)

    match = pattern.match(parts.path)
    if match is None:
        raise InvalidURLError(message)

    return SecretLocator(
        scheme=parts.scheme,
        host=parts.netloc,
        kind=kind,
        name=match.group("name"),
        version=match.groupdict().get("version") or "",
    )
