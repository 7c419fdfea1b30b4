"""
Input validation functions for certificate tools.

Provides validation for common names, alternative names, expiry dates,
timeouts, and CA naming rules.
"""

import re
from datetime import datetime, timedelta, timezone
from ipaddress import ip_address
from typing import Optional

DEFAULT_VALIDITY_YEARS = 10

_DNS_LABEL = re.compile(r"^(\*|[A-Za-z0-9_]([A-Za-z0-9_-]{0,61}[A-Za-z0-9_])?)$")


def validate_common_name(common_name: str) -> str:
    """Validate a certificate common name.

    Args:
        common_name: Hostname for a server (e.g. '*.dev.example.com') or any
            identifier for a client (e.g. 'my-client')

    Returns:
        The validated common name, stripped of surrounding whitespace

    Raises:
        ValueError: If the common name is empty or too long
    """
    if not common_name or not common_name.strip():
        raise ValueError(
            "Common name cannot be empty. "
            "Hint: Use a hostname for servers or any identifier for clients."
        )

    common_name = common_name.strip()
    if len(common_name) > 64:
        raise ValueError(
            f"Common name is too long ({len(common_name)} characters). "
            "Must be at most 64 characters. "
            "Hint: Put longer names in the alternative names list."
        )

    return common_name


def validate_alt_names(alt_names) -> list[str]:
    """Validate a list of subject alternative names.

    Accepts either a list of names or a comma-separated string. Surrounding
    whitespace is removed and empty entries are dropped.

    Args:
        alt_names: Alternative names as a list or comma-separated string

    Returns:
        The cleaned list of names, in the original order

    Raises:
        ValueError: If a name contains an invalid DNS label
    """
    if not alt_names:
        return []

    if isinstance(alt_names, str):
        alt_names = alt_names.split(",")

    cleaned = []
    for name in alt_names:
        name = name.strip()
        if not name:
            continue
        if not _is_ip_literal(name):
            for label in name.rstrip(".").split("."):
                if not _DNS_LABEL.match(label):
                    raise ValueError(
                        f"Invalid alternative name: '{name}'. "
                        "Hint: Use DNS names (e.g. 'svc.internal') or IP addresses."
                    )
        cleaned.append(name)

    return cleaned


def parse_expiry(
    expire_at: Optional[str],
    default_years: int = DEFAULT_VALIDITY_YEARS,
    now: Optional[datetime] = None,
) -> datetime:
    """Parse an RFC 3339 expiry date.

    Args:
        expire_at: RFC 3339 timestamp (e.g. '2030-01-01T00:00:00Z'); when
            empty the expiry defaults to ``default_years`` from now
        default_years: Validity used when no date is given
        now: Reference time (defaults to the current UTC time)

    Returns:
        A timezone-aware UTC datetime truncated to whole seconds

    Raises:
        ValueError: If the date cannot be parsed or is not in the future
    """
    now = now or datetime.now(timezone.utc)

    if not expire_at:
        expiry = now + timedelta(days=365 * default_years)
    else:
        text = expire_at.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            expiry = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValueError(
                f"Failed to parse expiry date '{expire_at}': {e}. "
                "Hint: Use RFC 3339 format, e.g. '2030-01-01T00:00:00Z'."
            ) from e
        if expiry.tzinfo is None:
            raise ValueError(
                f"Expiry date '{expire_at}' has no timezone. "
                "Hint: Use RFC 3339 format, e.g. '2030-01-01T00:00:00Z'."
            )

    expiry = expiry.astimezone(timezone.utc).replace(microsecond=0)
    if expiry <= now:
        raise ValueError(
            f"Expiry date {expiry.isoformat()} is in the past. "
            "Hint: Choose a date in the future."
        )

    return expiry


def validate_timeout(timeout: float, max_val: float = 600) -> float:
    """Validate a store round-trip timeout in seconds.

    Args:
        timeout: Timeout in seconds
        max_val: Maximum allowed value (default: 600)

    Returns:
        The validated timeout

    Raises:
        ValueError: If the timeout is out of range
    """
    if timeout <= 0:
        raise ValueError(
            f"Timeout must be positive, got {timeout}. "
            "Hint: The default is 10 seconds."
        )

    if timeout > max_val:
        raise ValueError(
            f"Timeout cannot exceed {max_val} seconds, got {timeout}."
        )

    return timeout


def validate_ca_name_matches_url(name: str, url: str) -> str:
    """Check that a CA name matches the certificate name in its upload URL.

    Args:
        name: Certificate Authority name
        url: Certificate URL the CA will be uploaded to

    Returns:
        The validated CA name

    Raises:
        ValueError: If the name is empty or the URL does not end with it
    """
    if not name:
        raise ValueError(
            "CA name cannot be empty. "
            "Hint: The name becomes the CA certificate's common name."
        )

    if not url.rstrip("/").endswith("/" + name):
        raise ValueError(
            "CA name must match certificate name in the URL, e.g. "
            "MyCA -> https://myvault.vault.azure.net/certificates/MyCA"
        )

    return name


def _is_ip_literal(value: str) -> bool:
    try:
        ip_address(value)
    except ValueError:
        return False
    return True
