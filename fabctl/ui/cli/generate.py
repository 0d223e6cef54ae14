"""
CLI commands for network artifacts — cryptos, genesis block, channel tx.

Thin wrappers over ``fabctl.core.services.artifacts``. Arguments are
optional for click so that a missing one reaches the service and is
reported as a usage error, in declared order.
"""

from __future__ import annotations

import click

from fabctl.core.services import artifacts
from fabctl.ui.cli._common import ops_context, reports_errors


def _report(result: artifacts.ArtifactResult) -> None:
    if result.generated:
        click.secho(f"✅ {result.kind} generated in {result.path}", fg="green")
    else:
        click.secho(f"⊘ Kept existing {result.kind} in {result.path}", fg="yellow")


@click.group()
def generate() -> None:
    """Generate crypto material, the genesis block and channel transactions."""


@generate.command("cryptos")
@click.argument("config_path", required=False)
@click.argument("cryptos_path", required=False)
@click.pass_context
@reports_errors
def cryptos(ctx: click.Context, config_path: str | None, cryptos_path: str | None) -> None:
    """Generate all the crypto keys and certificates for the network."""
    _report(artifacts.generate_crypto_material(ops_context(ctx), config_path, cryptos_path))


@generate.command("genesis")
@click.argument("base_path", required=False)
@click.argument("config_path", required=False)
@click.argument("cryptos_path", required=False)
@click.argument("network_profile", required=False)
@click.pass_context
@reports_errors
def genesis(
    ctx: click.Context,
    base_path: str | None,
    config_path: str | None,
    cryptos_path: str | None,
    network_profile: str | None,
) -> None:
    """Generate the genesis block for the ordering service."""
    _report(artifacts.generate_genesis_block(
        ops_context(ctx), base_path, config_path, cryptos_path, network_profile,
    ))


@generate.command("channeltx")
@click.argument("channel_name", required=False)
@click.argument("base_path", required=False)
@click.argument("config_path", required=False)
@click.argument("cryptos_path", required=False)
@click.argument("network_profile", required=False)
@click.argument("channel_profile", required=False)
@click.argument("org_msp", required=False)
@click.pass_context
@reports_errors
def channeltx(
    ctx: click.Context,
    channel_name: str | None,
    base_path: str | None,
    config_path: str | None,
    cryptos_path: str | None,
    network_profile: str | None,
    channel_profile: str | None,
    org_msp: str | None,
) -> None:
    """Generate the channel creation and anchor peer transactions."""
    _report(artifacts.generate_channel_artifacts(
        ops_context(ctx),
        channel_name,
        base_path,
        config_path,
        cryptos_path,
        network_profile,
        channel_profile,
        org_msp,
    ))
