"""Environment-sourced settings for governor-publication."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Union

from dotenv import load_dotenv

from .constants import REGISTRY_API_URL
from .exceptions import ConfigurationMissingError

# Settings field -> environment variable
ENV_VARS = {
    "chain_id": "CHAIN_ID",
    "private_key": "PRIVATE_KEY",
    "rpc_url": "RPC_URL",
    "etherscan_api_key": "ETHERSCAN_API_KEY",
    "tally_api_key": "TALLY_API_KEY",
    "tally_api_token": "TALLY_API_TOKEN",
}


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None or value.strip() == "":
        return None
    return value.strip()


@dataclass
class Settings:
    chain_id: Optional[str] = None
    private_key: Optional[str] = None
    rpc_url: Optional[str] = None
    etherscan_api_key: Optional[str] = None
    tally_api_key: Optional[str] = None
    tally_api_token: Optional[str] = None
    tally_api_url: str = REGISTRY_API_URL
    debug: bool = False

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[Union[Path, str]] = None,
    ) -> "Settings":
        """
        Read settings from the environment.

        Args:
            env: Mapping to read instead of os.environ (no .env loading)
            dotenv_path: .env file to load (defaults to searching from cwd)

        Returns:
            Settings; blank variables are treated as unset
        """
        if env is None:
            load_dotenv(dotenv_path=dotenv_path)
            env = os.environ

        values = {field: _clean(env.get(var)) for field, var in ENV_VARS.items()}
        return cls(
            **values,
            tally_api_url=_clean(env.get("TALLY_API_URL")) or REGISTRY_API_URL,
            debug=(env.get("DEBUG") or "").strip().lower() == "true",
        )

    def require(self, *fields: str) -> None:
        """
        Ensure the named settings are present.

        Raises:
            ConfigurationMissingError: Listing every missing environment variable
        """
        missing = [ENV_VARS[f] for f in fields if getattr(self, f) is None]
        if missing:
            raise ConfigurationMissingError(
                "Missing required environment variables: " + ", ".join(missing)
            )
