"""
Certificate error mapping utilities.

Maps library errors to user-friendly messages with actionable hints.
"""

from .errors import (
    AlreadyExistsError,
    ArtifactWriteError,
    CertManagerError,
    ContentTypeMismatchError,
    DeadlineExceededError,
    InvalidURLError,
    MalformedBundleError,
    SigningError,
    StoreRequestError,
    UnauthenticatedError,
    UnsupportedKeyTypeError,
)


def map_certmanager_error(error: Exception, operation: str) -> dict[str, str]:
    """Map an error to a user-friendly message with hints.

    Args:
        error: The exception raised by a certificate operation
        operation: Description of the operation that failed (e.g., "certificate download")

    Returns:
        Dictionary with keys:
        - error: User-friendly error message
        - hint: Actionable hint for resolving the issue
        - error_type: The exception class name
    """
    error_type = type(error).__name__

    if isinstance(error, DeadlineExceededError):
        return {
            "error": f"Request timed out during {operation}",
            "hint": "Check the URL, or increase the timeout.",
            "error_type": error_type,
        }

    if isinstance(error, InvalidURLError):
        return {
            "error": f"Invalid URL during {operation}: {error}",
            "hint": (
                "1. Secret URLs look like https://{vault}.vault.azure.net/secrets/{name}[/{version}]\n"
                "2. Certificate URLs look like https://{vault}.vault.azure.net/certificates/{name}"
            ),
            "error_type": error_type,
        }

    if isinstance(error, UnauthenticatedError):
        return {
            "error": f"Authentication failed during {operation}",
            "hint": (
                "1. Log in with 'az login', or\n"
                "2. Set AZURE_CLIENT_ID, AZURE_TENANT_ID and AZURE_CLIENT_SECRET"
            ),
            "error_type": error_type,
        }

    if isinstance(error, ContentTypeMismatchError):
        return {
            "error": f"{error}",
            "hint": (
                "The secret must be a PKCS#12 certificate. "
                "Use the secret URL of a Key Vault certificate."
            ),
            "error_type": error_type,
        }

    if isinstance(error, UnsupportedKeyTypeError):
        return {
            "error": f"Unsupported key during {operation}: {error}",
            "hint": "Only RSA keys are supported.",
            "error_type": error_type,
        }

    if isinstance(error, MalformedBundleError):
        return {
            "error": f"Could not decode certificate during {operation}: {error}",
            "hint": (
                "1. Verify the certificate password (leave blank if none)\n"
                "2. Check that the bundle holds a private key and a certificate"
            ),
            "error_type": error_type,
        }

    if isinstance(error, AlreadyExistsError):
        return {
            "error": f"{error}",
            "hint": "Choose a new certificate name; existing certificates are never overwritten.",
            "error_type": error_type,
        }

    if isinstance(error, SigningError):
        return {
            "error": f"Signing failed during {operation}: {error}",
            "hint": "Check that the CA bundle contains its private key.",
            "error_type": error_type,
        }

    if isinstance(error, StoreRequestError):
        hint = "Check Key Vault access policies and the resource name."
        if error.status_code == 404:
            hint = "Verify the secret name and version in the URL."
        elif error.status_code in (401, 403):
            hint = "The identity in use lacks permission on this Key Vault."
        return {
            "error": f"Key Vault request failed during {operation}: {error}",
            "hint": hint,
            "error_type": error_type,
        }

    if isinstance(error, ArtifactWriteError):
        return {
            "error": f"Failed to write files during {operation}: {error}",
            "hint": "Check that the output directory is writable.",
            "error_type": error_type,
        }

    if isinstance(error, CertManagerError):
        return {
            "error": f"{operation} failed: {error}",
            "hint": "See the error message for details.",
            "error_type": error_type,
        }

    return {
        "error": f"Unexpected error during {operation}",
        "hint": "Check the server logs for details.",
        "error_type": error_type,
    }
