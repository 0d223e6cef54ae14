"""
Network model — the immutable configuration of one ledger network.

Built once at startup from network.yml plus environment overrides,
then passed explicitly to every service. Nothing in fabctl reads
process-wide configuration after this point.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

SYSTEM_CHANNEL = "orderer-system-channel"

_HOST_PATH_FIELDS = (
    "base_path",
    "config_path",
    "cryptos_path",
    "compose_file",
    "data_path",
    "chaincode_path",
)


class NetworkConfig(BaseModel):
    """Everything that parameterizes a network operation.

    Host paths are resolved against ``root`` at construction time, so
    they can be mounted into containers as-is.
    """

    model_config = ConfigDict(frozen=True)

    root: Path = Field(default_factory=Path.cwd)

    # Images
    fabric_version: str = "1.4.4"
    fabric_thirdparty_version: str = "0.4.18"
    golang_image: str = "golang"
    golang_tag: str = "1.13"

    # Host paths
    base_path: Path = Path(".")
    config_path: Path = Path("config")
    cryptos_path: Path = Path("crypto-config")
    compose_file: Path = Path("docker-compose.yaml")
    data_path: Path = Path("data")
    chaincode_path: Path = Path("chaincode")

    # Paths as seen from inside the utility container
    channels_config_path: str = "/etc/hyperledger/channels"
    chaincode_remote_path: str = "chaincode"

    # Identifiers
    channel_name: str = "mychannel"
    chaincode_name: str = "mychaincode"
    chaincode_version: str = "1.0"
    network_profile: str = "OneOrgOrdererGenesis"
    channel_profile: str = "OneOrgChannel"
    org_msp: str = "Org1MSP"
    orderer_address: str = "orderer.example.com:7050"
    util_container: str = "cli"

    go_toolchain: Literal["auto", "local", "container"] = "auto"

    # Readiness poll after the runtime starts
    ready_retries: int = Field(default=10, ge=1)
    ready_interval: float = Field(default=2.0, ge=0)
    ready_timeout: float = Field(default=60.0, gt=0)

    benchmark_channel: str = "mychannel"
    benchmark_chaincode: str = "mychaincode"

    @field_validator("root", mode="after")
    @classmethod
    def _absolute_root(cls, value: Path) -> Path:
        return value.expanduser().resolve()

    @field_validator(*_HOST_PATH_FIELDS, mode="after")
    @classmethod
    def _resolve_against_root(cls, value: Path, info: ValidationInfo) -> Path:
        value = value.expanduser()
        if value.is_absolute():
            return value
        root = info.data.get("root") or Path.cwd()
        return (root / value).resolve()

    @property
    def channels_root(self) -> Path:
        """Host directory holding one subdirectory per channel."""
        return self.base_path / "channels"

    @property
    def tools_image(self) -> str:
        return f"hyperledger/fabric-tools:{self.fabric_version}"

    @property
    def golang_image_ref(self) -> str:
        return f"{self.golang_image}:{self.golang_tag}"

    @property
    def lock_file(self) -> Path:
        return self.base_path / ".fabctl.lock"

    @property
    def state_dir(self) -> Path:
        return self.base_path / ".state"


class ChaincodeInstance(BaseModel):
    """An installed or instantiated contract on a channel."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    channel: str = ""

    def __str__(self) -> str:
        suffix = f"@{self.channel}" if self.channel else ""
        return f"{self.name}:{self.version}{suffix}"
