"""
Network runtime — bootstrap, teardown, readiness, and image installation.

``start_network`` is the whole bring-up as one stage pipeline:

    chaincode build/test → teardown → cryptos → genesis → channel tx
    → compose up → readiness poll → channel create/join/update
    → chaincode install/instantiate

The first failing stage aborts everything after it. Bootstrap and
teardown both hold the network lock.
"""

from __future__ import annotations

import logging
import re
import shutil
from dataclasses import dataclass

from fabctl.adapters.registry import AdapterRegistry
from fabctl.core.context import OpsContext
from fabctl.core.engine.executor import PipelineReport, Stage, run_pipeline
from fabctl.core.errors import DependencyError, RuntimeNotReadyError
from fabctl.core.services import artifacts, chaincode_ops, channel_ops
from fabctl.core.services.locking import network_lock

logger = logging.getLogger(__name__)

FABRIC_IMAGES = ("peer", "orderer", "ca", "ccenv", "tools")
THIRDPARTY_IMAGES = ("couchdb", "kafka", "zookeeper")

# Leftovers from a previous run: fabric containers, chaincode (dev-*)
# containers and images, and untagged images.
_LEFTOVER_CONTAINER_IMAGE = re.compile(r"fabric|dev-")
_LEFTOVER_IMAGE_REPOSITORY = re.compile(r"^<none>|dev-")


@dataclass
class TeardownResult:
    containers_removed: int = 0
    images_removed: int = 0
    data_removed: bool = False

    def to_dict(self) -> dict:
        return {
            "containers_removed": self.containers_removed,
            "images_removed": self.images_removed,
            "data_removed": self.data_removed,
        }


# ── Dependencies ────────────────────────────────────────────────


def check_dependencies(registry: AdapterRegistry, *adapters: str) -> None:
    """Raise DependencyError if any adapter's tool is not installed."""
    missing = [name for name in adapters if not registry.is_available(name)]
    if missing:
        raise DependencyError(
            f"{', '.join(missing)} required but not installed. Aborting."
        )


def install_images(ctx: OpsContext) -> list[str]:
    """Pull the Go, Fabric and third-party images; tag Fabric ones as latest."""
    cfg = ctx.config
    pulled: list[str] = []

    def pull(image: str, tag_latest: bool) -> None:
        logger.info("Pulling %s", image)
        ctx.run(f"install:pull:{image}", "docker", f"Failed to pull {image}",
                operation="pull", image=image)
        if tag_latest:
            latest = image.rsplit(":", 1)[0] + ":latest"
            ctx.run(f"install:tag:{image}", "docker", f"Failed to tag {image} as {latest}",
                    operation="tag", source=image, target=latest)
        pulled.append(image)

    pull(cfg.golang_image_ref, tag_latest=False)
    for name in FABRIC_IMAGES:
        pull(f"hyperledger/fabric-{name}:{cfg.fabric_version}", tag_latest=True)
    for name in THIRDPARTY_IMAGES:
        pull(f"hyperledger/fabric-{name}:{cfg.fabric_thirdparty_version}", tag_latest=True)
    return pulled


# ── Teardown ────────────────────────────────────────────────────


def _id_pairs(output: str) -> list[tuple[str, str]]:
    pairs = []
    for line in output.splitlines():
        parts = line.split(None, 1)
        if len(parts) == 2:
            pairs.append((parts[0], parts[1].strip()))
    return pairs


def _prune_leftovers(ctx: OpsContext) -> tuple[int, int]:
    """Remove leftover containers and images. Best-effort, never raises."""
    containers_removed = 0
    ps = ctx.call("teardown:ps", "docker", operation="ps", all=True)
    container_ids = [
        cid for cid, image in _id_pairs(ps.output) if _LEFTOVER_CONTAINER_IMAGE.search(image)
    ] if ps.ok else []
    if container_ids:
        rm = ctx.call("teardown:rm", "docker", operation="rm", ids=container_ids)
        if rm.ok:
            containers_removed = len(container_ids)
        else:
            logger.warning("Could not remove leftover containers: %s", rm.error)

    image_ids: list[str] = []
    dangling = ctx.call("teardown:images:dangling", "docker", operation="images", filters=["dangling=true"])
    if dangling.ok:
        image_ids += [iid for iid, _ in _id_pairs(dangling.output)]
    images = ctx.call("teardown:images", "docker", operation="images")
    if images.ok:
        image_ids += [iid for iid, repo in _id_pairs(images.output) if _LEFTOVER_IMAGE_REPOSITORY.search(repo)]
    image_ids = list(dict.fromkeys(image_ids))

    images_removed = 0
    if image_ids:
        rmi = ctx.call("teardown:rmi", "docker", operation="rmi", ids=image_ids)
        if rmi.ok:
            images_removed = len(image_ids)
        else:
            logger.warning("Could not remove leftover images: %s", rmi.error)

    return containers_removed, images_removed


def teardown(ctx: OpsContext) -> TeardownResult:
    """Bring the runtime down without taking the lock (caller holds it)."""
    cfg = ctx.config
    logger.info("Tearing network down (%s)", cfg.compose_file)
    ctx.run("network:down", "docker", "Failed to bring the network runtime down",
            operation="compose_down", compose_file=str(cfg.compose_file), cwd=str(cfg.root))

    result = TeardownResult()
    result.containers_removed, result.images_removed = _prune_leftovers(ctx)

    data_path = cfg.data_path
    if data_path.is_dir():
        logger.warning("Found data directory: %s", data_path)
        if ctx.confirm(f"Found data directory: {data_path}. Do you wish to remove this data?"):
            shutil.rmtree(data_path)
            result.data_removed = True
            logger.info("Removed data directory %s", data_path)
    return result


def stop_network(ctx: OpsContext) -> TeardownResult:
    """Tear the network runtime down. Safe to call when already stopped."""
    with network_lock(ctx.config.lock_file):
        return teardown(ctx)


# ── Readiness ───────────────────────────────────────────────────


def wait_until_ready(ctx: OpsContext) -> int:
    """Poll the peer until it answers, within the configured bounds.

    Returns:
        The attempt number that succeeded.

    Raises:
        RuntimeNotReadyError: Retries exhausted or timeout elapsed.
    """
    cfg = ctx.config
    deadline = ctx.clock() + cfg.ready_timeout
    last_error = ""
    attempt = 0

    while attempt < cfg.ready_retries:
        attempt += 1
        receipt = ctx.call(
            "network:probe", "docker",
            operation="exec", container=cfg.util_container,
            command=["peer", "channel", "list"],
        )
        if not receipt.failed:
            logger.info("Network runtime ready after %d attempt(s)", attempt)
            return attempt

        last_error = receipt.error or ""
        remaining = deadline - ctx.clock()
        if attempt >= cfg.ready_retries or remaining <= 0:
            break
        logger.debug("Runtime not ready (attempt %d/%d): %s", attempt, cfg.ready_retries, last_error)
        ctx.sleep(min(cfg.ready_interval, remaining))

    raise RuntimeNotReadyError(
        f"Network runtime not ready after {attempt} attempt(s)"
        + (f": {last_error}" if last_error else "")
    )


# ── Bootstrap ───────────────────────────────────────────────────


def _compose_up(ctx: OpsContext) -> None:
    cfg = ctx.config
    ctx.run("network:up", "docker", "Failed to start the network runtime",
            operation="compose_up", compose_file=str(cfg.compose_file), cwd=str(cfg.root))


def bootstrap_stages(ctx: OpsContext) -> list[Stage]:
    """The bring-up sequence, in order."""
    cfg = ctx.config
    chaincode = cfg.chaincode_name
    return [
        Stage("chaincode:build", lambda: chaincode_ops.build_chaincode(ctx, chaincode),
              f"Building chaincode {chaincode}"),
        Stage("chaincode:test", lambda: chaincode_ops.run_chaincode_tests(ctx, chaincode),
              f"Unit testing chaincode {chaincode}"),
        Stage("network:teardown", lambda: teardown(ctx), "Tearing down any previous network"),
        Stage("artifacts:crypto",
              lambda: artifacts.generate_crypto_material(ctx, cfg.config_path, cfg.cryptos_path),
              "Generating crypto material"),
        Stage("artifacts:genesis",
              lambda: artifacts.generate_genesis_block(
                  ctx, cfg.base_path, cfg.config_path, cfg.cryptos_path, cfg.network_profile),
              "Generating genesis block"),
        Stage("artifacts:channel",
              lambda: artifacts.generate_channel_artifacts(
                  ctx, cfg.channel_name, cfg.base_path, cfg.config_path, cfg.cryptos_path,
                  cfg.network_profile, cfg.channel_profile, cfg.org_msp),
              f"Generating channel artifacts for {cfg.channel_name}"),
        Stage("network:up", lambda: _compose_up(ctx), "Starting network runtime"),
        Stage("network:ready", lambda: wait_until_ready(ctx), "Waiting for the network runtime"),
        Stage("channel:create", lambda: channel_ops.create_channel(ctx, cfg.channel_name),
              f"Creating channel {cfg.channel_name}"),
        Stage("channel:join", lambda: channel_ops.join_channel(ctx, cfg.channel_name),
              f"Joining channel {cfg.channel_name}"),
        Stage("channel:update", lambda: channel_ops.update_channel(ctx, cfg.channel_name, cfg.org_msp),
              f"Updating anchor peers for {cfg.org_msp}"),
        Stage("chaincode:install",
              lambda: chaincode_ops.install_chaincode(
                  ctx, chaincode, cfg.chaincode_version, f"{cfg.chaincode_remote_path}/{chaincode}"),
              f"Installing chaincode {chaincode}"),
        Stage("chaincode:instantiate",
              lambda: chaincode_ops.instantiate_chaincode(
                  ctx, chaincode, cfg.chaincode_version, cfg.channel_name),
              f"Instantiating chaincode {chaincode} on {cfg.channel_name}"),
    ]


def start_network(ctx: OpsContext) -> PipelineReport:
    """Bring the whole network up from scratch.

    Raises:
        StageFailedError: The first stage that failed, with its cause.
        LockError: Another operator holds the network lock.
    """
    with network_lock(ctx.config.lock_file):
        return run_pipeline(bootstrap_stages(ctx), operation="start")
