"""Command-line entry points for verifying and publishing a governor deployment."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .auth import SiweAuthenticator
from .exceptions import PublicationError
from .parsers import read_deployment_record, reduce_to_latest_creations
from .paths import find_default_script, find_latest_run_file, get_deployment_record_path
from .publish import GovernorPublisher, locate_governance_contracts
from .registry import RegistryClient
from .settings import Settings
from .types import VerifierCredentials
from .verification import verify_all

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(debug: bool = False) -> None:
    """Install a stdout handler on the package logger."""
    package_logger = logging.getLogger("governor_publication")
    package_logger.setLevel(logging.DEBUG if debug else logging.INFO)

    if package_logger.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    package_logger.addHandler(handler)


def _publisher(settings: Settings) -> GovernorPublisher:
    registry = RegistryClient(settings.tally_api_key, api_url=settings.tally_api_url)
    authenticator = SiweAuthenticator(
        registry, private_key=settings.private_key, token=settings.tally_api_token
    )
    return GovernorPublisher(registry, authenticator)


def _latest_record(args, settings: Settings):
    chain_dir = Path(args.broadcast_dir) / args.script / settings.chain_id
    return read_deployment_record(find_latest_run_file(chain_dir))


def cmd_verify(args, settings: Settings) -> int:
    settings.chain_id = args.chain_id or settings.chain_id
    settings.rpc_url = args.rpc_url or settings.rpc_url
    settings.etherscan_api_key = args.etherscan or settings.etherscan_api_key
    settings.require("chain_id", "rpc_url", "etherscan_api_key")
    chain_id, rpc_url, etherscan = (
        settings.chain_id,
        settings.rpc_url,
        settings.etherscan_api_key,
    )

    script = args.script or find_default_script(args.script_dir)
    logger.info("Using deploy script: %s", script)

    record_path = get_deployment_record_path(script, chain_id, args.target, args.broadcast_dir)
    logger.info("Reading deployment data from: %s", record_path)
    record = read_deployment_record(record_path)

    selector = None
    if args.contracts:
        selector = [c.strip() for c in args.contracts.split(",") if c.strip()]

    report = verify_all(
        record,
        VerifierCredentials(chain_id=chain_id, rpc_url=rpc_url, etherscan_api_key=etherscan),
        selector,
        out_dir=args.out_dir,
    )
    return 0 if report.ok else 1


def cmd_publish(args, settings: Settings) -> int:
    settings.require("chain_id", "tally_api_key")
    record = _latest_record(args, settings)
    result = _publisher(settings).publish(record, settings.chain_id, root=args.root)
    if result.existing and result.registration is None:
        logger.info("DAO already exists on Tally; details unavailable.")
    return 0


def cmd_check(args, settings: Settings) -> int:
    settings.require("chain_id", "tally_api_key")
    record = _latest_record(args, settings)
    contracts = locate_governance_contracts(reduce_to_latest_creations(record))
    _publisher(settings).check(settings.chain_id, contracts.governor_address)
    return 0


def cmd_auth(args, settings: Settings) -> int:
    settings.require("tally_api_key")
    registry = RegistryClient(settings.tally_api_key, api_url=settings.tally_api_url)
    authenticator = SiweAuthenticator(
        registry, private_key=settings.private_key, token=settings.tally_api_token
    )
    token = authenticator.get_token()
    logger.info("Successfully obtained Tally API token")
    print(token)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="governor-publication",
        description="Verify deployed governor contracts and publish the DAO to Tally",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--env-file", default=None, help="Path to .env file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_record_args(sub, script_default):
        sub.add_argument("--script", default=script_default, help="Deploy script name")
        sub.add_argument("--broadcast-dir", default="broadcast")

    verify = subparsers.add_parser("verify", help="Verify contract sources on Etherscan")
    add_record_args(verify, None)
    verify.add_argument("--chain-id", dest="chain_id")
    verify.add_argument("--etherscan", help="Etherscan API key")
    verify.add_argument("--rpc-url", dest="rpc_url")
    verify.add_argument("--target", default="latest", help="'latest' or a block number")
    verify.add_argument("--contracts", help="Comma-separated contract names")
    verify.add_argument("--out-dir", default="out")
    verify.add_argument("--script-dir", default="script")
    verify.set_defaults(func=cmd_verify)

    publish = subparsers.add_parser("publish", help="Register the DAO on Tally")
    add_record_args(publish, "Deploy.s.sol")
    publish.add_argument("--root", default=None, help="Directory holding DAO config files")
    publish.set_defaults(func=cmd_publish)

    check = subparsers.add_parser("check", help="Check whether the DAO is on Tally")
    add_record_args(check, "Deploy.s.sol")
    check.set_defaults(func=cmd_check)

    auth = subparsers.add_parser("auth", help="Obtain a Tally API token via SIWE")
    auth.set_defaults(func=cmd_auth)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env(dotenv_path=args.env_file)
    configure_logging(args.debug or settings.debug)

    try:
        return args.func(args, settings)
    except PublicationError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
