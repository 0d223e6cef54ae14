"""
Channel lifecycle — create, join, and anchor-peer update.

Thin forwarders to ``peer channel ...`` in the utility container. The
artifacts they submit live under ``{channels_root}/{channel}/`` on the
host, mounted at ``channels_config_path`` inside the container; each
operation checks its artifact on the host before calling the peer.
"""

from __future__ import annotations

import logging
from pathlib import Path

from fabctl.core.context import OpsContext
from fabctl.core.errors import MissingArtifactError
from fabctl.core.models.action import Receipt
from fabctl.core.services.artifacts import anchors_tx_file, channel_tx_file, require, require_plain_name

logger = logging.getLogger(__name__)


def channel_block_file(channel_name: str) -> str:
    return f"{channel_name}.block"


def _host_artifact(ctx: OpsContext, channel_name: str, filename: str) -> Path:
    require_plain_name("channel name", channel_name)
    path = ctx.config.channels_root / channel_name / filename
    if not path.is_file():
        raise MissingArtifactError(f"artifact for channel '{channel_name}'", path)
    return path


def _container_path(ctx: OpsContext, channel_name: str, filename: str) -> str:
    return f"{ctx.config.channels_config_path.rstrip('/')}/{channel_name}/{filename}"


def create_channel(ctx: OpsContext, channel_name: str) -> Receipt:
    """Submit the channel-creation transaction and fetch the channel block."""
    require(("channel name", channel_name))
    tx = channel_tx_file(channel_name)
    _host_artifact(ctx, channel_name, tx)

    logger.info("Creating channel %s using %s", channel_name, tx)
    return ctx.peer(
        "channel:create",
        f"Failed to create channel {channel_name}",
        "channel", "create",
        "-o", ctx.config.orderer_address,
        "-c", channel_name,
        "-f", _container_path(ctx, channel_name, tx),
        "--outputBlock", _container_path(ctx, channel_name, channel_block_file(channel_name)),
    )


def join_channel(ctx: OpsContext, channel_name: str) -> Receipt:
    """Have the utility peer join the channel from its configuration block."""
    require(("channel name", channel_name))
    block = channel_block_file(channel_name)
    _host_artifact(ctx, channel_name, block)

    logger.info("Joining channel %s", channel_name)
    return ctx.peer(
        "channel:join",
        f"Failed to join channel {channel_name}",
        "channel", "join",
        "-b", _container_path(ctx, channel_name, block),
    )


def update_channel(ctx: OpsContext, channel_name: str, org_msp: str) -> Receipt:
    """Submit the anchor-peer update transaction for ``org_msp``."""
    require(("channel name", channel_name), ("MSP", org_msp))
    require_plain_name("MSP", org_msp)
    tx = anchors_tx_file(org_msp)
    _host_artifact(ctx, channel_name, tx)

    logger.info("Updating anchor peers of %s for %s", channel_name, org_msp)
    return ctx.peer(
        "channel:update",
        f"Failed to update anchor peers of channel {channel_name}",
        "channel", "update",
        "-o", ctx.config.orderer_address,
        "-c", channel_name,
        "-f", _container_path(ctx, channel_name, tx),
    )
