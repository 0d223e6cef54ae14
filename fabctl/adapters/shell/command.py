"""
Shell command adapter — run a local program and capture its output.

Used for the local Go toolchain (build/test of chaincode). The docker
adapter shares ``run_process`` so every subprocess call in fabctl
produces receipts the same way.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from collections.abc import Mapping, Sequence
from pathlib import Path

from fabctl.adapters.base import Adapter, ExecutionContext
from fabctl.core.models.action import Receipt

logger = logging.getLogger(__name__)


def run_process(
    adapter: str,
    action_id: str,
    argv: Sequence[str],
    *,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> Receipt:
    """Run ``argv`` and turn the outcome into a Receipt.

    No timeout by default: a stuck tool blocks the caller, which is the
    documented behavior for bootstrap stages.
    """
    command = list(argv)
    full_env = None
    if env:
        full_env = os.environ.copy()
        full_env.update(env)

    logger.debug("Executing: %s (cwd=%s)", " ".join(command), cwd)
    start = time.monotonic()

    try:
        result = subprocess.run(
            command,
            cwd=cwd,
            env=full_env,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return Receipt.failure(
            adapter=adapter,
            action_id=action_id,
            error=f"Command timed out after {timeout}s",
            metadata={"command": command, "timeout": timeout},
        )
    except OSError as e:
        return Receipt.failure(
            adapter=adapter,
            action_id=action_id,
            error=f"Command execution error: {e}",
            metadata={"command": command},
        )

    elapsed_ms = int((time.monotonic() - start) * 1000)
    output = result.stdout.strip()
    stderr = result.stderr.strip()

    if result.returncode == 0:
        return Receipt.success(
            adapter=adapter,
            action_id=action_id,
            output=output,
            duration_ms=elapsed_ms,
            return_code=0,
            metadata={"command": command, "stderr": stderr},
        )

    return Receipt.failure(
        adapter=adapter,
        action_id=action_id,
        error=stderr or f"Command exited with code {result.returncode}",
        duration_ms=elapsed_ms,
        return_code=result.returncode,
        metadata={"command": command, "stdout": output},
    )


class ShellCommandAdapter(Adapter):
    """Execute a local command.

    Action params:
        argv (list[str]): The program and its arguments.
        cwd (str): Working directory (default: context.cwd).
        env (dict): Extra environment variables.
        timeout (float): Timeout in seconds (default: none).
    """

    name = "shell"
    binary = "sh"

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        argv = context.params.get("argv") or []
        if not argv:
            return False, "Missing required param: 'argv'"

        cwd = context.working_dir
        if cwd and not Path(cwd).is_dir():
            return False, f"Working directory does not exist: {cwd}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        return run_process(
            self.name,
            context.action.id,
            context.params["argv"],
            cwd=context.working_dir,
            env=context.params.get("env"),
            timeout=context.params.get("timeout"),
        )
