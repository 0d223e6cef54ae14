"""
Configuration loader — reads network.yml into a NetworkConfig.

Sources, lowest precedence first:
    model defaults  <  network.yml  <  environment variables

The environment variable names are the ones the network's .env file
has always used (FABRIC_VERSION, CHANNEL_NAME, ORG_MSP...), so an
existing .env can be sourced before running fabctl.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from fabctl.core.errors import ConfigError
from fabctl.core.models.network import NetworkConfig

logger = logging.getLogger(__name__)

# Default config filename
NETWORK_CONFIG_FILE = "network.yml"

# Environment variable → NetworkConfig field
ENV_VARS: dict[str, str] = {
    "ROOT": "root",
    "FABRIC_VERSION": "fabric_version",
    "FABRIC_THIRDPARTY_IMAGE_VERSION": "fabric_thirdparty_version",
    "GOLANG_DOCKER_IMAGE": "golang_image",
    "GOLANG_DOCKER_TAG": "golang_tag",
    "BASE_PATH": "base_path",
    "CONFIG_PATH": "config_path",
    "CRYPTOS_PATH": "cryptos_path",
    "COMPOSE_FILE": "compose_file",
    "DATA_PATH": "data_path",
    "CHAINCODE_PATH": "chaincode_path",
    "CHANNELS_CONFIG_PATH": "channels_config_path",
    "CHAINCODE_REMOTE_PATH": "chaincode_remote_path",
    "CHANNEL_NAME": "channel_name",
    "CHAINCODE_NAME": "chaincode_name",
    "CHAINCODE_VERSION": "chaincode_version",
    "CONFIGTX_PROFILE_NETWORK": "network_profile",
    "CONFIGTX_PROFILE_CHANNEL": "channel_profile",
    "ORG_MSP": "org_msp",
    "ORDERER_ADDRESS": "orderer_address",
    "CHAINCODE_UTIL_CONTAINER": "util_container",
    "FABCTL_GO_TOOLCHAIN": "go_toolchain",
    "FABCTL_READY_RETRIES": "ready_retries",
    "FABCTL_READY_INTERVAL": "ready_interval",
    "FABCTL_READY_TIMEOUT": "ready_timeout",
    "FABCTL_BENCHMARK_CHANNEL": "benchmark_channel",
    "FABCTL_BENCHMARK_CHAINCODE": "benchmark_chaincode",
}


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for network.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to network.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / NETWORK_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading network config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "network" key or be flat
    return dict(data.get("network", data))


def env_overrides(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Collect config fields set through environment variables."""
    environ = os.environ if environ is None else environ
    return {
        field: environ[var]
        for var, field in ENV_VARS.items()
        if environ.get(var)
    }


def load_config(
    path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    search: bool = True,
) -> NetworkConfig:
    """Build the immutable network configuration.

    Args:
        path: Explicit path to network.yml. If None and ``search`` is
            set, searches upward from the cwd; a missing file is fine
            and leaves the defaults in place.
        environ: Environment mapping (default: ``os.environ``).
        search: Whether to look for network.yml when ``path`` is None.

    Returns:
        Validated, frozen NetworkConfig.

    Raises:
        ConfigError: If the file is unreadable or values are invalid.
    """
    data: dict[str, Any] = {}

    if path is None and search:
        path = find_config_file()

    if path is not None:
        data = _read_yaml(path)
        # Relative paths in the file are relative to the file itself
        data.setdefault("root", str(path.parent.resolve()))

    data.update(env_overrides(environ))

    try:
        config = NetworkConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid network configuration: {e}") from e

    logger.info(
        "Loaded network config: channel=%s chaincode=%s root=%s",
        config.channel_name,
        config.chaincode_name,
        config.root,
    )
    return config
