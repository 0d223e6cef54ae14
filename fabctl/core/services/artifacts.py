"""
Artifact generation — crypto material, genesis block, channel transactions.

Every artifact is produced by a generator tool (cryptogen, configtxgen)
running in the fabric-tools container with the relevant host
directories mounted. Each step:

    1. validates its required arguments (UsageError, nothing touched)
    2. checks its prerequisites exist (MissingArtifactError)
    3. if the target directory already exists, asks before wiping it;
       a decline is a successful no-op
    4. runs the tool; any non-zero exit raises ToolError
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from fabctl.core.context import OpsContext
from fabctl.core.errors import MissingArtifactError, UsageError
from fabctl.core.models.network import SYSTEM_CHANNEL

logger = logging.getLogger(__name__)

CRYPTO_CONFIG_FILE = "crypto-config.yaml"
CONFIGTX_FILE = "configtx.yaml"
GENESIS_BLOCK_FILE = "genesis_block.pb"


@dataclass
class ArtifactResult:
    """Outcome of one generation step."""

    kind: str
    path: Path
    generated: bool

    def to_dict(self) -> dict:
        return {"kind": self.kind, "path": str(self.path), "generated": self.generated}


def require(*arguments: tuple[str, object]) -> None:
    """Fail fast on the first empty argument, in declared order."""
    for label, value in arguments:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise UsageError(f"{label[0].upper()}{label[1:]} missing")


def require_plain_name(label: str, value: str) -> None:
    """Reject names that would escape their directory once joined into a path."""
    if value == "." or ".." in value or "/" in value or "\\" in value:
        raise UsageError(f"Invalid {label} '{value}': must not contain path separators or '..'")


def channel_tx_file(channel_name: str) -> str:
    return f"{channel_name}_tx.pb"


def anchors_tx_file(org_msp: str) -> str:
    return f"{org_msp}_anchors_tx.pb"


def _require_file(what: str, path: Path) -> None:
    if not path.is_file():
        raise MissingArtifactError(what, path)


def _require_dir(what: str, path: Path) -> None:
    if not path.is_dir():
        raise MissingArtifactError(what, path)


def _prepare_target(ctx: OpsContext, target: Path, question: str) -> bool:
    """Make ``target`` an empty directory, asking first if it exists.

    Returns False when the operator declines; the directory is then
    left exactly as it was.
    """
    if target.exists():
        logger.warning("%s already exists", target)
        if not ctx.confirm(question):
            logger.info("Keeping existing %s", target)
            return False
        shutil.rmtree(target)
    target.mkdir(parents=True, exist_ok=True)
    return True


def generate_crypto_material(ctx: OpsContext, config_path, output_path) -> ArtifactResult:
    """Generate identities and certificates with cryptogen.

    Args:
        config_path: Directory holding crypto-config.yaml.
        output_path: Directory receiving the identity tree.
    """
    require(("config path", config_path), ("cryptos path", output_path))

    config_dir = Path(config_path).resolve()
    cryptos = Path(output_path).resolve()
    _require_file("crypto config", config_dir / CRYPTO_CONFIG_FILE)

    if not _prepare_target(ctx, cryptos, "crypto-config already exists. Do you wish to re-generate crypto-config?"):
        return ArtifactResult("cryptos", cryptos, generated=False)

    logger.info("Generating cryptos: config=%s output=%s", config_dir, cryptos)
    ctx.docker_run(
        "crypto:generate",
        "Failed to generate crypto material",
        image=ctx.config.tools_image,
        volumes=[
            f"{config_dir / CRYPTO_CONFIG_FILE}:/{CRYPTO_CONFIG_FILE}",
            f"{cryptos}:/crypto-config",
        ],
        command=[
            "cryptogen",
            "generate",
            f"--config=/{CRYPTO_CONFIG_FILE}",
            "--output=/crypto-config",
        ],
    )
    return ArtifactResult("cryptos", cryptos, generated=True)


def _configtx_run(ctx: OpsContext, action_id: str, failure: str, *, config_dir: Path,
                  channel_dir: Path, channel: str, cryptos: Path, args: list[str]) -> None:
    ctx.docker_run(
        action_id,
        failure,
        image=ctx.config.tools_image,
        volumes=[
            f"{config_dir / CONFIGTX_FILE}:/{CONFIGTX_FILE}",
            f"{channel_dir}:/channels/{channel}",
            f"{cryptos}:/crypto-config",
        ],
        env={"FABRIC_CFG_PATH": "/"},
        command=["configtxgen", *args],
    )


def generate_genesis_block(
    ctx: OpsContext,
    base_path,
    config_path,
    cryptos_path,
    network_profile: str,
) -> ArtifactResult:
    """Generate and inspect the ordering service's genesis block."""
    require(
        ("base path", base_path),
        ("config path", config_path),
        ("crypto material path", cryptos_path),
        ("network profile", network_profile),
    )

    config_dir = Path(config_path).resolve()
    cryptos = Path(cryptos_path).resolve()
    channel_dir = Path(base_path).resolve() / "channels" / SYSTEM_CHANNEL
    _require_file("configtx", config_dir / CONFIGTX_FILE)
    _require_dir("crypto material", cryptos)

    if not _prepare_target(ctx, channel_dir, f"Channel directory {channel_dir} already exists. Do you wish to re-generate channel config?"):
        return ArtifactResult("genesis", channel_dir, generated=False)

    logger.info("Generating genesis block: profile=%s dir=%s", network_profile, channel_dir)
    block = f"/channels/{SYSTEM_CHANNEL}/{GENESIS_BLOCK_FILE}"
    common = dict(config_dir=config_dir, channel_dir=channel_dir, channel=SYSTEM_CHANNEL, cryptos=cryptos)

    _configtx_run(
        ctx, "genesis:generate", "Failed to generate orderer genesis block",
        args=["-profile", network_profile, "-channelID", SYSTEM_CHANNEL,
              "-outputBlock", block, f"/{CONFIGTX_FILE}"],
        **common,
    )
    _configtx_run(
        ctx, "genesis:inspect", "Failed to inspect orderer genesis block",
        args=["-inspectBlock", block],
        **common,
    )
    return ArtifactResult("genesis", channel_dir, generated=True)


def generate_channel_artifacts(
    ctx: OpsContext,
    channel_name: str,
    base_path,
    config_path,
    cryptos_path,
    network_profile: str,
    channel_profile: str,
    org_msp: str,
) -> ArtifactResult:
    """Generate the channel-creation and anchor-peer transactions.

    ``network_profile`` is validated for parity with the genesis step
    but the channel transactions are shaped by ``channel_profile`` alone.
    """
    require(
        ("channel name", channel_name),
        ("base path", base_path),
        ("config path", config_path),
        ("crypto material path", cryptos_path),
        ("network profile", network_profile),
        ("channel profile", channel_profile),
        ("MSP", org_msp),
    )
    require_plain_name("channel name", channel_name)
    require_plain_name("MSP", org_msp)

    config_dir = Path(config_path).resolve()
    cryptos = Path(cryptos_path).resolve()
    channel_dir = Path(base_path).resolve() / "channels" / channel_name
    _require_file("configtx", config_dir / CONFIGTX_FILE)
    _require_dir("crypto material", cryptos)

    if not _prepare_target(ctx, channel_dir, f"Channel directory {channel_dir} already exists. Do you wish to re-generate channel config?"):
        return ArtifactResult("channeltx", channel_dir, generated=False)

    logger.info(
        "Generating channel config: channel=%s profile=%s org=%s",
        channel_name, channel_profile, org_msp,
    )
    tx = f"/channels/{channel_name}/{channel_tx_file(channel_name)}"
    common = dict(config_dir=config_dir, channel_dir=channel_dir, channel=channel_name, cryptos=cryptos)

    _configtx_run(
        ctx, "channeltx:generate", "Failed to generate channel configuration transaction",
        args=["-profile", channel_profile, "-outputCreateChannelTx", tx,
              "-channelID", channel_name, f"/{CONFIGTX_FILE}"],
        **common,
    )
    _configtx_run(
        ctx, "channeltx:inspect", "Failed to inspect channel configuration transaction",
        args=["-inspectChannelCreateTx", tx],
        **common,
    )
    _configtx_run(
        ctx, "channeltx:anchors", f"Failed to generate anchor peer update for {org_msp}",
        args=["-profile", channel_profile, "-outputAnchorPeersUpdate",
              f"/channels/{channel_name}/{anchors_tx_file(org_msp)}",
              "-channelID", channel_name, "-asOrg", org_msp, f"/{CONFIGTX_FILE}"],
        **common,
    )
    return ArtifactResult("channeltx", channel_dir, generated=True)
