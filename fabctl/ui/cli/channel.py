"""
CLI commands for the channel lifecycle.

Thin wrappers over ``fabctl.core.services.channel_ops``.
"""

from __future__ import annotations

import click

from fabctl.core.services import channel_ops
from fabctl.ui.cli._common import echo_output, ops_context, reports_errors


@click.group()
def channel() -> None:
    """Channel — create, join, update anchor peers."""


@channel.command("create")
@click.argument("channel_name", required=False)
@click.pass_context
@reports_errors
def create(ctx: click.Context, channel_name: str | None) -> None:
    """Create a channel from its generated configuration transaction."""
    receipt = channel_ops.create_channel(ops_context(ctx), channel_name)
    echo_output(receipt.output)
    click.secho(f"✅ Channel {channel_name} created", fg="green")


@channel.command("join")
@click.argument("channel_name", required=False)
@click.pass_context
@reports_errors
def join(ctx: click.Context, channel_name: str | None) -> None:
    """Join the utility peer to a channel."""
    receipt = channel_ops.join_channel(ops_context(ctx), channel_name)
    echo_output(receipt.output)
    click.secho(f"✅ Joined channel {channel_name}", fg="green")


@channel.command("update")
@click.argument("channel_name", required=False)
@click.argument("org_msp", required=False)
@click.pass_context
@reports_errors
def update(ctx: click.Context, channel_name: str | None, org_msp: str | None) -> None:
    """Update a channel with the organization's anchor peers."""
    receipt = channel_ops.update_channel(ops_context(ctx), channel_name, org_msp)
    echo_output(receipt.output)
    click.secho(f"✅ Anchor peers of {org_msp} updated on {channel_name}", fg="green")
