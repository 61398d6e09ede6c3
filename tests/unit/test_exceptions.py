"""Unit tests for custom exception classes."""

import pytest

from governor_publication.exceptions import (
    ArtifactMalformedError,
    ArtifactNotFoundError,
    AuthConfigMissingError,
    AuthenticationError,
    ConfigurationMissingError,
    LoginFailedError,
    NonceFetchFailedError,
    PublicationError,
    PublishFailedError,
    RegistryTransportError,
    UnknownContractError,
    VerifierInvocationFailedError,
)

ALL_EXCEPTIONS = [
    PublicationError,
    ArtifactNotFoundError,
    ArtifactMalformedError,
    UnknownContractError,
    ConfigurationMissingError,
    AuthenticationError,
    AuthConfigMissingError,
    NonceFetchFailedError,
    LoginFailedError,
    RegistryTransportError,
    VerifierInvocationFailedError,
    PublishFailedError,
]


class TestExceptionCatching:
    """Test that exceptions can be caught as their base types."""

    def test_catch_artifact_not_found_as_file_not_found_error(self):
        with pytest.raises(FileNotFoundError):
            raise ArtifactNotFoundError("test")

    def test_catch_artifact_malformed_as_value_error(self):
        with pytest.raises(ValueError):
            raise ArtifactMalformedError("test")

    def test_catch_unknown_contract_as_value_error(self):
        with pytest.raises(ValueError):
            raise UnknownContractError("test")

    def test_catch_transport_error_as_connection_error(self):
        with pytest.raises(ConnectionError):
            raise RegistryTransportError("test")

    @pytest.mark.parametrize(
        "exc_class", [AuthConfigMissingError, NonceFetchFailedError, LoginFailedError]
    )
    def test_catch_auth_failures_as_authentication_error(self, exc_class):
        with pytest.raises(AuthenticationError):
            raise exc_class("test")

    def test_catch_all_as_publication_error(self):
        """Test that all custom exceptions can be caught as PublicationError."""
        for exc_class in ALL_EXCEPTIONS:
            with pytest.raises(PublicationError):
                raise exc_class("test")


class TestExceptionCreation:
    """Test creating exceptions and their attached context."""

    def test_exceptions_accept_string_messages(self):
        for exc_class in ALL_EXCEPTIONS:
            exc = exc_class("test message")
            assert str(exc) == "test message"

    def test_unknown_contract_carries_available_names(self):
        exc = UnknownContractError("missing", available={"A": 1, "B": 2}.keys())
        assert exc.available == ["A", "B"]

    def test_publish_failed_carries_raw_payload(self):
        errors = [{"message": "bad input", "extensions": {"code": "BAD_USER_INPUT"}}]
        exc = PublishFailedError("failed", errors=errors, status_code=422)

        assert exc.errors == errors
        assert exc.status_code == 422

    def test_verifier_failure_names_contract(self):
        exc = VerifierInvocationFailedError("boom", contract_name="UngovernableGovernor")
        assert exc.contract_name == "UngovernableGovernor"
