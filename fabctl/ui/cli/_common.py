"""
Shared plumbing for the CLI command groups.

Every command builds its OpsContext through ``ops_context(ctx)`` and is
wrapped in ``@reports_errors`` so a FabctlError becomes a red one-line
diagnostic and exit code 1.
"""

from __future__ import annotations

import functools
import logging
import sys
from collections.abc import Callable
from typing import Any, TypeVar

import click

from fabctl.adapters.registry import AdapterRegistry, default_registry
from fabctl.core.config.loader import load_config
from fabctl.core.context import OpsContext
from fabctl.core.errors import FabctlError
from fabctl.core.models.network import NetworkConfig
from fabctl.core.persistence.audit import AuditEntry, AuditWriter

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

_AFFIRMATIVE = frozenset("yes")


def is_affirmative(answer: str | None) -> bool:
    """An answer is a yes when it starts with y, e or s (any case)."""
    answer = (answer or "").strip()
    return bool(answer) and answer[0].lower() in _AFFIRMATIVE


def prompt_confirm(message: str) -> bool:
    """Ask a yes/no question on the terminal. Anything else is a no."""
    answer = click.prompt(
        click.style(f"{message} [y/N]", fg="yellow"),
        default="",
        show_default=False,
        prompt_suffix=" ",
    )
    return is_affirmative(answer)


def fail(message: object) -> None:
    click.secho(f"❌ {message}", fg="red")
    sys.exit(1)


def reports_errors(func: F) -> F:
    """Turn a FabctlError raised by the command into exit code 1."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except FabctlError as e:
            logger.debug("Command failed", exc_info=True)
            fail(e)

    return wrapper  # type: ignore[return-value]


def get_config(ctx: click.Context) -> NetworkConfig:
    """Load the network configuration once per invocation."""
    obj = ctx.ensure_object(dict)
    if obj.get("config") is None:
        obj["config"] = load_config(obj.get("config_path"))
    return obj["config"]


def get_registry(ctx: click.Context) -> AdapterRegistry:
    obj = ctx.ensure_object(dict)
    if obj.get("registry") is None:
        obj["registry"] = default_registry()
    return obj["registry"]


def ops_context(ctx: click.Context) -> OpsContext:
    """Build the OpsContext for this invocation (prompts on the terminal)."""
    return OpsContext(
        config=get_config(ctx),
        registry=get_registry(ctx),
        confirm=prompt_confirm,
    )


def echo_output(text: str) -> None:
    """Print a tool's output, if it produced any."""
    text = (text or "").rstrip()
    if text:
        click.echo(text)


def record(config: NetworkConfig, entry: AuditEntry) -> None:
    """Append an entry to the network's operation history."""
    AuditWriter.for_network(config).write(entry)
