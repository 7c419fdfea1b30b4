"""
Error handling utilities for certmanager MCP server.

Provides the error taxonomy, input validators, and user-facing error hints.
"""

from .errors import (
    CertManagerError,
    InvalidURLError,
    UnauthenticatedError,
    ContentTypeMismatchError,
    MalformedBundleError,
    UnsupportedKeyTypeError,
    AlreadyExistsError,
    SigningError,
    DeadlineExceededError,
    StoreRequestError,
    ArtifactWriteError,
)
from .validators import (
    validate_common_name,
    validate_alt_names,
    parse_expiry,
    validate_timeout,
    validate_ca_name_matches_url,
)
from .hints import (
    map_certmanager_error,
)

__all__ = [
    # Errors
    "CertManagerError",
    "InvalidURLError",
    "UnauthenticatedError",
    "ContentTypeMismatchError",
    "MalformedBundleError",
    "UnsupportedKeyTypeError",
    "AlreadyExistsError",
    "SigningError",
    "DeadlineExceededError",
    "StoreRequestError",
    "ArtifactWriteError",
    # Validators
    "validate_common_name",
    "validate_alt_names",
    "parse_expiry",
    "validate_timeout",
    "validate_ca_name_matches_url",
    # Hints
    "map_certmanager_error",
]
