"""Custom exception classes for governor-publication library."""

from typing import Any, Iterable, Optional


class PublicationError(Exception):
    """Base exception for deployment publication errors."""

    pass


class ArtifactNotFoundError(PublicationError, FileNotFoundError):
    """Raised when a deployment record or compiled artifact file is missing."""

    pass


class ArtifactMalformedError(PublicationError, ValueError):
    """Raised when an artifact file does not parse as the expected shape."""

    pass


class UnknownContractError(PublicationError, ValueError):
    """Raised when a named contract is absent from the deployment's creations."""

    def __init__(self, message: str, available: Iterable[str] = ()):
        super().__init__(message)
        self.available = list(available)


class ConfigurationMissingError(PublicationError, ValueError):
    """Raised when required configuration (files or environment) is absent."""

    pass


class AuthenticationError(PublicationError):
    """Base exception for registry sign-in failures."""

    pass


class AuthConfigMissingError(AuthenticationError):
    """Raised when no signing key is configured for SIWE authentication."""

    pass


class NonceFetchFailedError(AuthenticationError):
    """Raised when the registry nonce challenge cannot be obtained."""

    pass


class LoginFailedError(AuthenticationError):
    """Raised when the signed login exchange does not yield a token."""

    pass


class RegistryTransportError(PublicationError, ConnectionError):
    """Raised when the registry endpoint cannot be reached."""

    pass


class VerifierInvocationFailedError(PublicationError, RuntimeError):
    """Raised when source verification of a single contract fails."""

    def __init__(self, message: str, contract_name: Optional[str] = None):
        super().__init__(message)
        self.contract_name = contract_name


class PublishFailedError(PublicationError, RuntimeError):
    """Raised when the registry rejects a registration for a non-duplicate reason."""

    def __init__(
        self,
        message: str,
        errors: Any = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.errors = errors
        self.status_code = status_code
