"""Path management utilities for governor-publication library."""

from pathlib import Path
from typing import Optional, Union

from .exceptions import ArtifactNotFoundError

PathLike = Union[Path, str]

DEFAULT_SCRIPT = "Deploy.s.sol"
DAO_METADATA_FILENAME = "tally.config.json"
DEPLOY_CONFIG_FILENAME = "deploy.config.json"


def get_deployment_record_path(
    script: str,
    chain_id: str,
    target: str = "latest",
    broadcast_dir: PathLike = "broadcast",
) -> Path:
    """
    Get the Foundry broadcast record path for a deploy script run.

    Args:
        script: Deploy script filename (e.g., "Deploy.s.sol")
        chain_id: Chain identifier as a string
        target: "latest" or a block number identifying a specific run
        broadcast_dir: Root of the broadcast directory

    Returns:
        Path to broadcast/<script>/<chain_id>/run-<target>.json
    """
    run_file = "run-latest.json" if target == "latest" else f"run-{target}.json"
    return Path(broadcast_dir) / script / str(chain_id) / run_file


def find_latest_run_file(chain_dir: PathLike) -> Path:
    """
    Find the most recent run file in a per-chain broadcast directory.

    Dry-run files are skipped. Ordering is by filename, so run-latest.json
    wins over numbered runs when it is present.

    Raises:
        ArtifactNotFoundError: If the directory or any candidate file is missing
    """
    chain_dir = Path(chain_dir)
    if not chain_dir.is_dir():
        raise ArtifactNotFoundError(
            f"Deployment directory {chain_dir} not found. Please deploy contracts first."
        )

    candidates = sorted(
        p.name for p in chain_dir.glob("*.json") if "dry-run" not in p.name
    )
    if not candidates:
        raise ArtifactNotFoundError(f"No deployment files found in {chain_dir}")

    return chain_dir / candidates[-1]


def find_default_script(script_dir: PathLike = "script") -> str:
    """
    Pick the deploy script whose broadcast records should be read.

    Returns:
        "Deploy.s.sol" if present, otherwise the first .sol file by name

    Raises:
        ArtifactNotFoundError: If the directory holds no Solidity scripts
    """
    script_dir = Path(script_dir)
    sol_files = sorted(p.name for p in script_dir.glob("*.sol")) if script_dir.is_dir() else []

    if not sol_files:
        raise ArtifactNotFoundError(
            f"No deploy scripts found in {script_dir}. Please specify a script explicitly."
        )

    if DEFAULT_SCRIPT in sol_files:
        return DEFAULT_SCRIPT
    return sol_files[0]


def get_artifact_path(contract_name: str, out_dir: PathLike = "out") -> Path:
    """Get the compiled artifact path: <out_dir>/<Name>.sol/<Name>.json."""
    return Path(out_dir) / f"{contract_name}.sol" / f"{contract_name}.json"


def get_dao_metadata_path(root: Optional[PathLike] = None) -> Path:
    return (Path(root) if root is not None else Path.cwd()) / DAO_METADATA_FILENAME


def get_deploy_config_path(root: Optional[PathLike] = None) -> Path:
    return (Path(root) if root is not None else Path.cwd()) / DEPLOY_CONFIG_FILENAME
