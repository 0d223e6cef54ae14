"""
Docker adapter — container, image and compose operations.

Uses the docker CLI — never the Docker API directly. The generator
tools (cryptogen, configtxgen) run through ``run``; the peer CLI runs
through ``exec`` against the utility container.
"""

from __future__ import annotations

import logging
from typing import Any

from fabctl.adapters.base import Adapter, ExecutionContext
from fabctl.adapters.shell.command import run_process
from fabctl.core.models.action import Receipt

logger = logging.getLogger(__name__)

# operation → params it cannot run without
_REQUIRED: dict[str, tuple[str, ...]] = {
    "run": ("image",),
    "exec": ("container", "command"),
    "compose_up": ("compose_file",),
    "compose_down": ("compose_file",),
    "ps": (),
    "images": (),
    "rm": ("ids",),
    "rmi": ("ids",),
    "pull": ("image",),
    "tag": ("source", "target"),
    "version": (),
}

VALID_OPERATIONS = frozenset(_REQUIRED)


def build_command(params: dict[str, Any]) -> list[str]:
    """Translate action params into a docker argv."""
    operation = params["operation"]

    if operation == "run":
        argv = ["docker", "run"]
        if params.get("remove", True):
            argv.append("--rm")
        for volume in params.get("volumes", []):
            argv += ["-v", volume]
        for key, value in params.get("env", {}).items():
            argv += ["-e", f"{key}={value}"]
        if params.get("workdir"):
            argv += ["-w", params["workdir"]]
        argv.append(params["image"])
        argv += list(params.get("command", []))
        return argv

    if operation == "exec":
        return ["docker", "exec", params["container"], *params["command"]]

    if operation == "compose_up":
        return ["docker", "compose", "-f", str(params["compose_file"]), "up", "-d"]

    if operation == "compose_down":
        return ["docker", "compose", "-f", str(params["compose_file"]), "down"]

    if operation == "ps":
        argv = ["docker", "ps"]
        if params.get("all", True):
            argv.append("-a")
        return argv + ["--format", "{{.ID}} {{.Image}}"]

    if operation == "images":
        argv = ["docker", "images"]
        for flt in params.get("filters", []):
            argv += ["-f", flt]
        return argv + ["--format", "{{.ID}} {{.Repository}}"]

    if operation == "rm":
        return ["docker", "rm", "-f", *params["ids"]]

    if operation == "rmi":
        return ["docker", "rmi", "-f", *params["ids"]]

    if operation == "pull":
        return ["docker", "pull", params["image"]]

    if operation == "tag":
        return ["docker", "tag", params["source"], params["target"]]

    if operation == "version":
        return ["docker", "--version"]

    raise ValueError(f"Unknown operation: {operation}")


class DockerAdapter(Adapter):
    """Docker and Docker Compose operations.

    Action params:
        operation (str): One of 'run', 'exec', 'compose_up', 'compose_down',
                         'ps', 'images', 'rm', 'rmi', 'pull', 'tag', 'version'.
        image, command, volumes, env, workdir: for 'run'.
        container, command: for 'exec'.
        compose_file: for compose operations.
        ids: for 'rm' / 'rmi'.
        timeout (float): Timeout in seconds (default: none).
    """

    name = "docker"
    binary = "docker"

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.params.get("operation", "")
        if not operation:
            return False, "Missing required param: 'operation'"

        if operation not in VALID_OPERATIONS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(VALID_OPERATIONS))}"

        for key in _REQUIRED[operation]:
            if not context.params.get(key):
                return False, f"Missing required param for '{operation}': '{key}'"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        try:
            argv = build_command(context.params)
        except (KeyError, ValueError) as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Docker error: {e}",
            )

        logger.debug("docker %s: %s", context.action.id, " ".join(argv[1:4]))
        return run_process(
            self.name,
            context.action.id,
            argv,
            cwd=context.working_dir,
            timeout=context.params.get("timeout"),
        )
