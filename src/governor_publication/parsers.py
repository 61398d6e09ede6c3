"""Deployment record and compiled artifact parsers for governor-publication library."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .exceptions import ArtifactMalformedError, ArtifactNotFoundError
from .paths import get_artifact_path
from .types import ContractArtifact, DeployedContract, DeploymentRecord, Transaction

CREATE = "CREATE"


def load_json_file(file_path: Union[Path, str]) -> Any:
    """
    Load a JSON file, mapping failures onto artifact errors.

    Raises:
        ArtifactNotFoundError: If the file does not exist
        ArtifactMalformedError: If the file is not valid JSON
    """
    file_path = Path(file_path)
    try:
        with open(file_path) as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise ArtifactNotFoundError(f"Artifact file not found: {file_path}") from e
    except json.JSONDecodeError as e:
        raise ArtifactMalformedError(f"Invalid JSON in {file_path}: {e}") from e


def _parse_block_number(value: Any, file_path: Path) -> Optional[int]:
    # Broadcast receipts carry hex quantities; transactions carry plain ints
    if value is None:
        return None
    if isinstance(value, bool):
        raise ArtifactMalformedError(f"Invalid blockNumber {value!r} in {file_path}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value, 16) if value.lower().startswith("0x") else int(value)
        except ValueError:
            pass
    raise ArtifactMalformedError(f"Invalid blockNumber {value!r} in {file_path}")


def read_deployment_record(file_path: Union[Path, str]) -> DeploymentRecord:
    """
    Parse a Foundry broadcast run file.

    Args:
        file_path: Path to run-latest.json or run-<block>.json

    Returns:
        DeploymentRecord with transactions in file order

    Raises:
        ArtifactNotFoundError: If the file is absent
        ArtifactMalformedError: If the file is not a broadcast record
    """
    file_path = Path(file_path)
    data = load_json_file(file_path)

    if not isinstance(data, dict) or not isinstance(data.get("transactions"), list):
        raise ArtifactMalformedError(
            f"Deployment record {file_path} has no 'transactions' array"
        )

    transactions: List[Transaction] = []
    for index, tx in enumerate(data["transactions"]):
        if not isinstance(tx, dict) or "transactionType" not in tx:
            raise ArtifactMalformedError(
                f"Transaction #{index} in {file_path} is missing 'transactionType'"
            )

        arguments = tx.get("arguments") or []
        if not isinstance(arguments, list):
            raise ArtifactMalformedError(
                f"Transaction #{index} in {file_path} has non-list 'arguments'"
            )

        transactions.append(
            Transaction(
                transaction_type=tx["transactionType"],
                contract_name=tx.get("contractName"),
                contract_address=tx.get("contractAddress"),
                arguments=[str(arg) for arg in arguments],
                block_number=_parse_block_number(tx.get("blockNumber"), file_path),
            )
        )

    return DeploymentRecord(transactions=transactions, source=str(file_path))


def reduce_to_latest_creations(record: DeploymentRecord) -> Dict[str, DeployedContract]:
    """
    Map contract name to its most recent CREATE transaction.

    Re-deployments within one record are legal; a later CREATE for the same
    name overwrites the earlier entry. Insertion order follows the first
    appearance of each name.

    Args:
        record: Parsed deployment record

    Returns:
        Dictionary mapping contract name -> DeployedContract
    """
    creations: Dict[str, DeployedContract] = {}

    for tx in record.transactions:
        if tx.transaction_type != CREATE or tx.contract_name is None:
            continue

        creations[tx.contract_name] = DeployedContract(
            name=tx.contract_name,
            address=tx.contract_address,
            constructor_args=list(tx.arguments),
            block_number=tx.block_number,
        )

    return creations


def read_contract_artifact(
    contract_name: str, out_dir: Union[Path, str] = "out"
) -> ContractArtifact:
    """
    Parse compiler metadata from a Foundry build artifact.

    Args:
        contract_name: Contract name; locates <out_dir>/<Name>.sol/<Name>.json
        out_dir: Foundry output directory

    Returns:
        ContractArtifact with compiler version, optimizer runs (if recorded)
        and constructor parameter types (empty if there is no constructor)

    Raises:
        ArtifactNotFoundError: If the artifact file is absent
        ArtifactMalformedError: If compiler version or ABI cannot be read
    """
    file_path = get_artifact_path(contract_name, out_dir)
    data = load_json_file(file_path)

    try:
        compiler_version = data["metadata"]["compiler"]["version"]
    except (KeyError, TypeError) as e:
        raise ArtifactMalformedError(
            f"Missing metadata.compiler.version in artifact: {file_path}"
        ) from e

    # Optimizer runs are optional
    optimizer_runs = None
    try:
        settings = data["metadata"].get("settings") or {}
        optimizer = settings.get("optimizer") or {}
        if optimizer.get("runs") is not None:
            optimizer_runs = int(optimizer["runs"])
    except (AttributeError, TypeError, ValueError) as e:
        raise ArtifactMalformedError(
            f"Malformed optimizer settings in artifact: {file_path}"
        ) from e

    abi = data.get("abi")
    if not isinstance(abi, list):
        raise ArtifactMalformedError(f"Missing abi array in artifact: {file_path}")

    constructor_param_types: List[str] = []
    for item in abi:
        if isinstance(item, dict) and item.get("type") == "constructor":
            try:
                constructor_param_types = [i["type"] for i in item.get("inputs", [])]
            except (KeyError, TypeError) as e:
                raise ArtifactMalformedError(
                    f"Malformed constructor inputs in artifact: {file_path}"
                ) from e
            break

    return ContractArtifact(
        contract_name=contract_name,
        compiler_version=compiler_version,
        constructor_param_types=constructor_param_types,
        optimizer_runs=optimizer_runs,
    )
