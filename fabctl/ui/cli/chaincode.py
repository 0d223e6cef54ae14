"""
CLI commands for the chaincode lifecycle and ad-hoc transactions.

Thin wrappers over ``fabctl.core.services.chaincode_ops``.
"""

from __future__ import annotations

import click

from fabctl.core.services import chaincode_ops
from fabctl.ui.cli._common import echo_output, ops_context, reports_errors


@click.group()
def chaincode() -> None:
    """Chaincode — build, test, install, instantiate, upgrade, invoke, query."""


@chaincode.command("build")
@click.argument("chaincode_name", required=False)
@click.pass_context
@reports_errors
def build(ctx: click.Context, chaincode_name: str | None) -> None:
    """Compile the chaincode (the binary is discarded)."""
    chaincode_ops.build_chaincode(ops_context(ctx), chaincode_name)
    click.secho(f"✅ Chaincode {chaincode_name} builds", fg="green")


@chaincode.command("test")
@click.argument("chaincode_name", required=False)
@click.pass_context
@reports_errors
def test(ctx: click.Context, chaincode_name: str | None) -> None:
    """Run the chaincode's unit tests."""
    receipt = chaincode_ops.run_chaincode_tests(ops_context(ctx), chaincode_name)
    if ctx.obj.get("verbose"):
        echo_output(receipt.output)
    click.secho(f"✅ Chaincode {chaincode_name} tests passed", fg="green")


@chaincode.command("install")
@click.argument("chaincode_name", required=False)
@click.argument("version", required=False)
@click.argument("path", required=False)
@click.pass_context
@reports_errors
def install(ctx: click.Context, chaincode_name: str | None, version: str | None, path: str | None) -> None:
    """Install a chaincode on the peer."""
    ops = ops_context(ctx)
    instance = chaincode_ops.install_chaincode(ops, chaincode_name, version, path)
    click.secho(f"✅ Installed {instance}", fg="green")


@chaincode.command("instantiate")
@click.argument("chaincode_name", required=False)
@click.argument("version", required=False)
@click.argument("channel_name", required=False)
@click.pass_context
@reports_errors
def instantiate(ctx: click.Context, chaincode_name: str | None, version: str | None,
                channel_name: str | None) -> None:
    """Instantiate an installed chaincode on a channel."""
    ops = ops_context(ctx)
    instance = chaincode_ops.instantiate_chaincode(ops, chaincode_name, version, channel_name)
    click.secho(f"✅ Instantiated {instance}", fg="green")


@chaincode.command("upgrade")
@click.argument("chaincode_name", required=False)
@click.argument("version", required=False)
@click.argument("channel_name", required=False)
@click.pass_context
@reports_errors
def upgrade(ctx: click.Context, chaincode_name: str | None, version: str | None,
            channel_name: str | None) -> None:
    """Rebuild, retest, reinstall and upgrade a chaincode to a new version."""
    ops = ops_context(ctx)
    instance = chaincode_ops.upgrade_chaincode(ops, chaincode_name, version, channel_name)
    click.secho(f"✅ Upgraded to {instance}", fg="green")


@chaincode.command("invoke")
@click.argument("channel_name", required=False)
@click.argument("chaincode_name", required=False)
@click.argument("request", required=False)
@click.pass_context
@reports_errors
def invoke(ctx: click.Context, channel_name: str | None, chaincode_name: str | None,
           request: str | None) -> None:
    """Submit a transaction, e.g. '{"Args":["put","key","value"]}'."""
    receipt = chaincode_ops.invoke(ops_context(ctx), channel_name, chaincode_name, request)
    echo_output(receipt.output)


@chaincode.command("query")
@click.argument("channel_name", required=False)
@click.argument("chaincode_name", required=False)
@click.argument("request", required=False)
@click.pass_context
@reports_errors
def query(ctx: click.Context, channel_name: str | None, chaincode_name: str | None,
          request: str | None) -> None:
    """Evaluate a read-only call, e.g. '{"Args":["get","key"]}'."""
    echo_output(chaincode_ops.query(ops_context(ctx), channel_name, chaincode_name, request))
