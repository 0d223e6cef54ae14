"""
CLI commands for load generation against a running network.

Thin wrapper over ``fabctl.core.services.benchmark``.
"""

from __future__ import annotations

import json

import click

from fabctl.core.engine.executor import generate_operation_id
from fabctl.core.persistence.audit import AuditEntry
from fabctl.core.services.benchmark import run_load
from fabctl.core.services.network_ops import check_dependencies
from fabctl.ui.cli._common import get_registry, ops_context, record, reports_errors


@click.group()
def benchmark() -> None:
    """Benchmark a running network."""


@benchmark.command("load")
@click.argument("jobs", required=False)
@click.argument("entries", required=False)
@click.option("--channel", "channel_name", default=None, help="Target channel (default: benchmark_channel).")
@click.option("--chaincode", "chaincode_name", default=None, help="Target chaincode (default: benchmark_chaincode).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
@reports_errors
def load(
    ctx: click.Context,
    jobs: str | None,
    entries: str | None,
    channel_name: str | None,
    chaincode_name: str | None,
    as_json: bool,
) -> None:
    """Bulk-load ENTRIES writes per each of JOBS parallel workers.

    Examples:

        fabctl benchmark load 10 100

        fabctl benchmark load 4 25 --channel mychannel --chaincode mychaincode
    """
    check_dependencies(get_registry(ctx), "docker")
    ops = ops_context(ctx)
    report = run_load(ops, jobs, entries, channel=channel_name, chaincode=chaincode_name)

    record(ops.config, AuditEntry(
        operation_id=generate_operation_id(),
        operation_type="benchmark",
        channel=channel_name or ops.config.benchmark_channel,
        chaincode=chaincode_name or ops.config.benchmark_chaincode,
        status="ok" if report.failed == 0 else "failed",
        duration_ms=int(report.elapsed_seconds * 1000),
        context=report.to_dict(),
    ))

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    click.secho(f"\n⚡ Load: {report.jobs} jobs × {report.entries_per_job} entries", fg="cyan", bold=True)
    click.echo(f"   Attempted:  {report.attempted}")
    click.secho(f"   Succeeded:  {report.succeeded}", fg="green")
    if report.failed:
        click.secho(f"   Failed:     {report.failed}", fg="red")
    click.echo(f"   Keys:       {report.distinct_keys} distinct")
    click.echo(f"   Elapsed:    {report.elapsed_seconds:.2f}s")
    click.echo(f"   Throughput: {report.throughput:.1f} tx/s ({report.confirmed_throughput:.1f} confirmed)")
    click.echo()
