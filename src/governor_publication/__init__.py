"""
governor-publication: verify a governor deployment's sources and publish the DAO to Tally
"""

from importlib.metadata import PackageNotFoundError, version

from .auth import SiweAuthenticator, build_siwe_message
from .dao_config import resolve_dao_config
from .exceptions import (
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
from .parsers import read_contract_artifact, read_deployment_record, reduce_to_latest_creations
from .publish import GovernorPublisher, namespace
from .registry import RegistryClient
from .settings import Settings
from .types import (
    ContractArtifact,
    DaoConfig,
    DaoConfigSource,
    DeployedContract,
    DeploymentRecord,
    ExistenceState,
    PublishResult,
    VerificationReport,
    VerifierCredentials,
)
from .verification import verify_all

try:
    __version__ = version("governor-publication")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "read_deployment_record",
    "read_contract_artifact",
    "reduce_to_latest_creations",
    "verify_all",
    "SiweAuthenticator",
    "build_siwe_message",
    "RegistryClient",
    "GovernorPublisher",
    "namespace",
    "resolve_dao_config",
    "Settings",
    "ContractArtifact",
    "DaoConfig",
    "DaoConfigSource",
    "DeployedContract",
    "DeploymentRecord",
    "ExistenceState",
    "PublishResult",
    "VerificationReport",
    "VerifierCredentials",
    "PublicationError",
    "ArtifactNotFoundError",
    "ArtifactMalformedError",
    "UnknownContractError",
    "ConfigurationMissingError",
    "AuthenticationError",
    "AuthConfigMissingError",
    "NonceFetchFailedError",
    "LoginFailedError",
    "RegistryTransportError",
    "VerifierInvocationFailedError",
    "PublishFailedError",
]
