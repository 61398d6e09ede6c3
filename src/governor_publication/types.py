"""Data types and dataclasses for governor-publication library."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Transaction:
    """One entry of a Foundry broadcast record."""

    transaction_type: str  # "CREATE", "CALL", ...
    contract_name: Optional[str] = None
    contract_address: Optional[str] = None
    arguments: List[str] = field(default_factory=list)
    block_number: Optional[int] = None


@dataclass(frozen=True)
class DeploymentRecord:
    """Ordered transactions produced by a single deployment run."""

    transactions: List[Transaction]
    source: Optional[str] = None  # Path the record was read from


@dataclass(frozen=True)
class DeployedContract:
    """Latest CREATE transaction for a contract name."""

    name: str
    address: str
    constructor_args: List[str]
    block_number: Optional[int] = None


@dataclass(frozen=True)
class ContractArtifact:
    """Compiler metadata for a compiled contract."""

    contract_name: str
    compiler_version: str
    constructor_param_types: List[str]
    optimizer_runs: Optional[int] = None


@dataclass(frozen=True)
class VerificationTarget:
    """Unit of work submitted to the verifier."""

    contract_name: str
    address: str
    constructor_args_raw: str  # Space-joined canonical string forms
    constructor_param_types: List[str]
    constructor_args: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class VerifierCredentials:
    chain_id: str
    rpc_url: str
    etherscan_api_key: str


@dataclass
class VerificationResult:
    contract_name: str
    address: Optional[str]
    success: bool
    status: str = ""
    error: Optional[Exception] = None


@dataclass
class VerificationReport:
    """Per-contract outcomes of a verification batch."""

    results: List[VerificationResult] = field(default_factory=list)

    @property
    def succeeded(self) -> List[VerificationResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> List[VerificationResult]:
        return [r for r in self.results if not r.success]

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def ok(self) -> bool:
        return self.failure_count == 0


class DaoConfigSource(Enum):
    """
    Which file a DaoConfig was resolved from.

    DAO_METADATA takes precedence over DEPLOY_CONFIG.
    """

    DAO_METADATA = "tally.config.json"
    DEPLOY_CONFIG = "deploy.config.json"


@dataclass(frozen=True)
class DaoConfig:
    name: str
    description: str
    source: DaoConfigSource


@dataclass(frozen=True)
class NonceChallenge:
    nonce: str
    nonce_token: str
    issued_at: str
    expiration_time: str


@dataclass(frozen=True)
class SiweCredential:
    token: str


@dataclass(frozen=True)
class GovernanceContracts:
    """Governor and token addresses with their registry start blocks."""

    governor_address: str
    token_address: str
    governor_start_block: int
    token_start_block: int


class ExistenceState(Enum):
    """Outcome of probing the registry for a governor registration."""

    UNKNOWN = "unknown"
    CONFIRMED_EXISTS = "exists"
    CONFIRMED_ABSENT = "absent"


@dataclass
class PublishResult:
    existing: bool
    registration: Optional[Dict[str, Any]] = None
