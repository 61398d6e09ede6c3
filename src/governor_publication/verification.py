"""Source verification of deployed contracts via Foundry's forge/cast tools."""

import logging
import subprocess
import time
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Union

from .constants import VERIFY_DELAY_SECONDS
from .exceptions import (
    ArtifactMalformedError,
    ArtifactNotFoundError,
    UnknownContractError,
    VerifierInvocationFailedError,
)
from .parsers import read_contract_artifact, reduce_to_latest_creations
from .types import (
    ContractArtifact,
    DeployedContract,
    DeploymentRecord,
    VerificationReport,
    VerificationResult,
    VerificationTarget,
    VerifierCredentials,
)

logger = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]


def select_targets(
    creations: Dict[str, DeployedContract], selector: Optional[Iterable[str]] = None
) -> List[str]:
    """
    Resolve which contracts to verify.

    Args:
        creations: Mapping from reduce_to_latest_creations()
        selector: Contract names to verify (defaults to all created contracts)

    Returns:
        Contract names in verification order

    Raises:
        UnknownContractError: If a selected name was not created by the run
    """
    if selector is None:
        return list(creations.keys())

    # Duplicates collapse; first occurrence keeps its position
    targets = list(dict.fromkeys(name.strip() for name in selector))
    for name in targets:
        if name not in creations:
            raise UnknownContractError(
                f'Specified contract "{name}" not found in deployment data. '
                f"Available contracts: {', '.join(creations.keys())}",
                available=creations.keys(),
            )
    return targets


def build_target(contract: DeployedContract, artifact: ContractArtifact) -> VerificationTarget:
    return VerificationTarget(
        contract_name=contract.name,
        address=contract.address,
        constructor_args_raw=" ".join(contract.constructor_args),
        constructor_param_types=list(artifact.constructor_param_types),
        constructor_args=list(contract.constructor_args),
    )


def _run_tool(runner: Runner, command: List[str], contract_name: str) -> str:
    """Run an external tool, returning stdout or raising VerifierInvocationFailedError."""
    logger.debug("Running: %s", " ".join(command))
    try:
        result = runner(command, check=True, capture_output=True, text=True)
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or "").strip()
        raise VerifierInvocationFailedError(
            f"{command[0]} {command[1]} failed for {contract_name} "
            f"(exit {e.returncode}): {stderr}",
            contract_name=contract_name,
        ) from e
    except OSError as e:
        raise VerifierInvocationFailedError(
            f"Could not run {command[0]} for {contract_name}: {e}",
            contract_name=contract_name,
        ) from e
    return (result.stdout or "").strip()


def encode_constructor_args(
    target: VerificationTarget, runner: Runner = subprocess.run
) -> str:
    """
    ABI-encode raw constructor arguments with `cast abi-encode`.

    Each argument is passed as its own argv entry, so values containing
    spaces (e.g., token names) survive intact.

    Returns:
        0x-prefixed hex encoding of the arguments
    """
    signature = f"constructor({','.join(target.constructor_param_types)})"
    command = ["cast", "abi-encode", signature, *target.constructor_args]
    return _run_tool(runner, command, target.contract_name)


def build_verify_command(
    target: VerificationTarget,
    artifact: ContractArtifact,
    credentials: VerifierCredentials,
    encoded_args: Optional[str] = None,
) -> List[str]:
    """Build the `forge verify-contract` argument vector for one target."""
    command = [
        "forge",
        "verify-contract",
        target.address,
        target.contract_name,
        "--compiler-version",
        artifact.compiler_version,
        "--watch",
        "--verifier",
        "etherscan",
        "--etherscan-api-key",
        credentials.etherscan_api_key,
        "--chain-id",
        str(credentials.chain_id),
        "--rpc-url",
        credentials.rpc_url,
    ]

    if artifact.optimizer_runs is not None:
        command += ["--num-of-optimizations", str(artifact.optimizer_runs)]

    if encoded_args is not None:
        command += ["--constructor-args", encoded_args]

    return command


def verify_contract(
    contract: DeployedContract,
    credentials: VerifierCredentials,
    out_dir: Union[Path, str] = "out",
    runner: Runner = subprocess.run,
) -> str:
    """
    Verify a single deployed contract.

    Returns:
        Status text reported by the verifier

    Raises:
        VerifierInvocationFailedError: On missing/malformed artifact or tool failure
    """
    if not contract.address:
        raise VerifierInvocationFailedError(
            f"No contract address recorded for {contract.name}", contract_name=contract.name
        )

    logger.info("Verifying %s at %s", contract.name, contract.address)

    try:
        artifact = read_contract_artifact(contract.name, out_dir)
    except (ArtifactNotFoundError, ArtifactMalformedError) as e:
        raise VerifierInvocationFailedError(str(e), contract_name=contract.name) from e

    target = build_target(contract, artifact)

    encoded_args = None
    if target.constructor_param_types:
        encoded_args = encode_constructor_args(target, runner)

    command = build_verify_command(target, artifact, credentials, encoded_args)
    return _run_tool(runner, command, contract.name)


def verify_all(
    record: DeploymentRecord,
    credentials: VerifierCredentials,
    selector: Optional[Iterable[str]] = None,
    *,
    out_dir: Union[Path, str] = "out",
    delay: float = VERIFY_DELAY_SECONDS,
    runner: Optional[Runner] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> VerificationReport:
    """
    Verify every selected contract created by a deployment run.

    Submissions are strictly sequential with `delay` seconds slept before
    each one, to stay under the verifier's rate limit. A failing contract is
    recorded in the report and the batch continues.

    Args:
        record: Parsed deployment record
        credentials: Chain id, RPC URL and verifier API key
        selector: Contract names to verify (defaults to all created contracts)
        out_dir: Foundry output directory holding compiled artifacts
        delay: Seconds to wait before each submission
        runner: subprocess.run-compatible callable (defaults to subprocess.run)
        sleep: time.sleep-compatible callable (defaults to time.sleep)

    Returns:
        VerificationReport with one result per target

    Raises:
        UnknownContractError: If selector names a contract absent from the record
    """
    runner = runner or subprocess.run
    sleep = sleep or time.sleep

    creations = reduce_to_latest_creations(record)
    targets = select_targets(creations, selector)

    if selector is None:
        logger.info("Found %d contracts to verify", len(targets))
    else:
        logger.info("Verifying specific contracts: %s", ", ".join(targets))

    report = VerificationReport()
    for name in targets:
        contract = creations[name]
        sleep(delay)

        try:
            status = verify_contract(contract, credentials, out_dir, runner)
        except VerifierInvocationFailedError as e:
            logger.error("Error verifying contract %s: %s", name, e)
            report.results.append(
                VerificationResult(name, contract.address, success=False, error=e)
            )
            continue

        logger.info("%s: %s", name, status)
        report.results.append(
            VerificationResult(name, contract.address, success=True, status=status)
        )

    if report.ok:
        logger.info("Verification process completed!")
    else:
        logger.error(
            "Verification completed with %d failure(s): %s",
            report.failure_count,
            ", ".join(r.contract_name for r in report.failed),
        )
    return report
