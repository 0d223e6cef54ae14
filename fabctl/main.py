"""
fabctl — CLI entrypoint.

Usage:
    fabctl --help
    fabctl install
    fabctl start
    fabctl chaincode upgrade mychaincode 1.1 mychannel
    fabctl benchmark load 10 100
"""

from __future__ import annotations

import json
import os
from pathlib import Path

import click

from fabctl import __version__
from fabctl.core.engine.executor import PipelineReport, generate_operation_id
from fabctl.core.errors import StageFailedError
from fabctl.core.observability.logging_config import setup_logging
from fabctl.core.persistence.audit import AuditEntry, AuditWriter
from fabctl.ui.cli._common import (
    get_config,
    get_registry,
    ops_context,
    record,
    reports_errors,
)


@click.group()
@click.version_option(version=__version__, prog_name="fabctl")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to network.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """fabctl — bootstrap and operate a single-org Fabric network."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("FABCTL_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("FABCTL_LOG_FILE"),
        log_file_level=os.environ.get("FABCTL_LOG_FILE_LEVEL"),
    )


def _print_stages(report: PipelineReport) -> None:
    icons = {"ok": ("✓", "green"), "failed": ("✗", "red"), "skipped": ("⊘", "yellow")}
    for result in report.results:
        icon, color = icons[result.status]
        click.secho(f"   {icon} {result.name}", fg=color, nl=False)
        timing = f" ({result.duration_ms}ms)" if result.duration_ms else ""
        click.echo(timing)
        if result.error:
            for line in result.error.split("\n")[:5]:
                click.echo(f"     │ {line}")


@cli.command()
@click.pass_context
@reports_errors
def install(ctx: click.Context) -> None:
    """Pull the Go, Fabric and third-party docker images."""
    from fabctl.core.services.network_ops import check_dependencies, install_images

    check_dependencies(get_registry(ctx), "docker")
    ops = ops_context(ctx)
    pulled = install_images(ops)

    record(ops.config, AuditEntry(
        operation_id=generate_operation_id(),
        operation_type="install",
        status="ok",
        context={"images": pulled},
    ))
    click.secho(f"✅ {len(pulled)} images installed", fg="green", bold=True)
    if not ctx.obj.get("quiet"):
        for image in pulled:
            click.echo(f"   • {image}")


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
@reports_errors
def start(ctx: click.Context, as_json: bool) -> None:
    """Start the network from scratch and initialize it."""
    from fabctl.core.services.network_ops import check_dependencies, start_network

    check_dependencies(get_registry(ctx), "docker")
    ops = ops_context(ctx)
    cfg = ops.config

    if not as_json:
        click.secho(
            f"\n⚡ Starting network — channel {cfg.channel_name}, chaincode {cfg.chaincode_name}",
            fg="cyan",
            bold=True,
        )

    try:
        report = start_network(ops)
    except StageFailedError as e:
        record(cfg, AuditEntry(
            operation_id=e.report.operation_id,
            operation_type="start",
            channel=cfg.channel_name,
            chaincode=cfg.chaincode_name,
            status="failed",
            duration_ms=e.report.duration_ms,
            errors=[str(e.cause)],
            context=e.report.to_dict(),
        ))
        if as_json:
            click.echo(json.dumps(e.report.to_dict(), indent=2))
        else:
            _print_stages(e.report)
            click.echo()
        raise

    record(cfg, AuditEntry(
        operation_id=report.operation_id,
        operation_type="start",
        channel=cfg.channel_name,
        chaincode=cfg.chaincode_name,
        status=report.status,
        duration_ms=report.duration_ms,
        context=report.to_dict(),
    ))

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    if ctx.obj.get("verbose"):
        _print_stages(report)
    click.echo()
    click.secho(
        f"   Network up: {report.succeeded}/{report.total} stages ({report.duration_ms}ms)",
        fg="green",
        bold=True,
    )
    click.echo()


@cli.command()
@click.pass_context
@reports_errors
def stop(ctx: click.Context) -> None:
    """Stop the network and remove its containers and chaincode images."""
    from fabctl.core.services.network_ops import stop_network

    ops = ops_context(ctx)
    result = stop_network(ops)

    record(ops.config, AuditEntry(
        operation_id=generate_operation_id(),
        operation_type="stop",
        status="ok",
        context=result.to_dict(),
    ))
    click.secho("✅ Network stopped", fg="green", bold=True)
    if not ctx.obj.get("quiet"):
        click.echo(f"   Containers removed: {result.containers_removed}")
        click.echo(f"   Images removed:     {result.images_removed}")
        if result.data_removed:
            click.echo(f"   Data removed:       {ops.config.data_path}")


@cli.command()
@click.option("--limit", "-n", default=20, show_default=True, help="Number of entries to show.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
@reports_errors
def history(ctx: click.Context, limit: int, as_json: bool) -> None:
    """Show the most recent operations on this network."""
    writer = AuditWriter.for_network(get_config(ctx))
    entries = writer.read_recent(limit)

    if as_json:
        click.echo(json.dumps([e.model_dump(mode="json") for e in entries], indent=2))
        return

    if not entries:
        click.secho("No operations recorded yet.", fg="yellow")
        return

    click.secho(f"📜 History ({len(entries)} of {writer.entry_count()}):", fg="cyan", bold=True)
    for entry in entries:
        color = "green" if entry.status == "ok" else "red"
        click.echo(f"   {entry.timestamp}  {entry.operation_type:<10} ", nl=False)
        click.secho(entry.status, fg=color, nl=False)
        click.echo(f"  {entry.operation_id}")
        for error in entry.errors:
            click.echo(f"     │ {error}")


# ── Register sub-command groups from fabctl/ui/cli/ ──────────────

from fabctl.ui.cli.generate import generate  # noqa: E402
from fabctl.ui.cli.channel import channel  # noqa: E402
from fabctl.ui.cli.chaincode import chaincode  # noqa: E402
from fabctl.ui.cli.benchmark import benchmark  # noqa: E402

cli.add_command(generate)
cli.add_command(channel)
cli.add_command(chaincode)
cli.add_command(benchmark)


if __name__ == "__main__":
    cli(prog_name="fabctl")
