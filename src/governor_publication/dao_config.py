"""DAO name/description resolution from tally.config.json or deploy.config.json."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .constants import DEFAULT_DAO_DESCRIPTION, DEFAULT_DAO_NAME
from .exceptions import ArtifactMalformedError, ConfigurationMissingError
from .parsers import load_json_file
from .paths import get_dao_metadata_path, get_deploy_config_path
from .types import DaoConfig, DaoConfigSource

logger = logging.getLogger(__name__)


def _load_object(file_path: Path) -> Dict[str, Any]:
    data = load_json_file(file_path)
    if not isinstance(data, dict):
        raise ArtifactMalformedError(f"Expected a JSON object in {file_path}")
    return data


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    section = data.get(key) or {}
    if not isinstance(section, dict):
        raise ArtifactMalformedError(f"Expected '{key}' to be an object in deploy configuration")
    return section


def dao_config_from_metadata(data: Dict[str, Any]) -> DaoConfig:
    return DaoConfig(
        name=data.get("daoName") or DEFAULT_DAO_NAME,
        description=data.get("description") or DEFAULT_DAO_DESCRIPTION,
        source=DaoConfigSource.DAO_METADATA,
    )


def dao_config_from_deploy_config(data: Dict[str, Any]) -> DaoConfig:
    """
    Derive DAO metadata from the contracts' deploy configuration.

    Name precedence: governor._name, then "<token._name> DAO", then the
    default name. The description names the token when a token section exists.
    """
    governor = _section(data, "governor")
    token = _section(data, "token")

    if governor.get("_name"):
        name = governor["_name"]
    elif token.get("_name"):
        name = f"{token['_name']} DAO"
    else:
        name = DEFAULT_DAO_NAME

    token_info = ""
    if data.get("token"):
        token_info = (
            f"Token: {token.get('_name') or 'Unknown'} ({token.get('_symbol') or 'Unknown'})"
        )
    description = f"{DEFAULT_DAO_DESCRIPTION} {token_info}".strip()

    return DaoConfig(name=name, description=description, source=DaoConfigSource.DEPLOY_CONFIG)


def resolve_dao_config(root: Optional[Union[Path, str]] = None) -> DaoConfig:
    """
    Resolve DAO name and description.

    Args:
        root: Project directory holding the config files (defaults to cwd)

    Returns:
        DaoConfig tagged with the file it came from

    Raises:
        ConfigurationMissingError: If neither config file exists
        ArtifactMalformedError: If the chosen file is not a JSON object, or a
            governor/token section of the deploy configuration is not an object
    """
    metadata_path = get_dao_metadata_path(root)
    if metadata_path.exists():
        config = dao_config_from_metadata(_load_object(metadata_path))
    else:
        logger.debug("%s not found, falling back to deploy configuration", metadata_path.name)
        deploy_config_path = get_deploy_config_path(root)
        if not deploy_config_path.exists():
            raise ConfigurationMissingError(
                f"Neither {metadata_path.name} nor {deploy_config_path.name} file found"
            )
        config = dao_config_from_deploy_config(_load_object(deploy_config_path))

    logger.debug(
        "Using DAO name %r and description %r from %s",
        config.name,
        config.description,
        config.source.value,
    )
    return config
