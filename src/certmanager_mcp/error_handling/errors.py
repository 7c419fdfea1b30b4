"""
Exception hierarchy for certificate management.

Every error raised by the library derives from CertManagerError. Raise sites
attach the underlying failure with ``raise ... from cause`` so callers can
inspect ``__cause__`` while users see a readable "stage: cause" message.
"""


class CertManagerError(Exception):
    """Base class for all certificate management errors."""

    def __str__(self) -> str:
        message = super().__str__()
        cause = self.__cause__
        if cause is None:
            return message
        cause_text = str(cause) or type(cause).__name__
        if not message:
            return cause_text
        return f"{message}: {cause_text}"


class InvalidURLError(CertManagerError, ValueError):
    """A store URL does not match the expected secret or certificate format."""


class UnauthenticatedError(CertManagerError):
    """Every credential provider failed to produce an access token.

    Attributes:
        failures: (provider name, exception) pairs, in the order tried
    """

    def __init__(self, message: str, failures: list = None):
        super().__init__(message)
        self.failures = list(failures or [])

    def __str__(self) -> str:
        message = super().__str__()
        # A wrapped UnauthenticatedError cause already lists the failures.
        if not self.failures or isinstance(self.__cause__, UnauthenticatedError):
            return message
        details = "; ".join(f"{name}: {err}" for name, err in self.failures)
        return f"{message} ({details})"


class ContentTypeMismatchError(CertManagerError):
    """A fetched secret does not carry the PKCS#12 content type."""

    def __init__(self, content_type, expected: str):
        super().__init__(
            f"invalid secret content type '{content_type or ''}', "
            f"should be '{expected}'"
        )
        self.content_type = content_type
        self.expected = expected


class MalformedBundleError(CertManagerError):
    """A PKCS#12 bundle could not be decoded into a key and certificates."""


class UnsupportedKeyTypeError(MalformedBundleError):
    """A bundle holds a private key that is not RSA."""


class AlreadyExistsError(CertManagerError):
    """The store already holds a certificate under the requested name."""

    def __init__(self, name: str):
        super().__init__(f"a remote certificate with the name {name} already exists")
        self.name = name


class SigningError(CertManagerError):
    """Key generation or certificate signing failed."""


class DeadlineExceededError(CertManagerError):
    """The store round trip did not finish before the caller's deadline."""


class StoreRequestError(CertManagerError):
    """The secret store answered with an error.

    Attributes:
        status_code: HTTP status returned by the store (None if no response)
    """

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class ArtifactWriteError(CertManagerError, OSError):
    """Writing a key or certificate file failed."""
