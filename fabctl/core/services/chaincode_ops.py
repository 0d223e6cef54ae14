"""
Chaincode lifecycle — build, test, install, instantiate, upgrade.

Build and test run the Go toolchain on the host when ``go`` is on
PATH, otherwise inside the golang container with the chaincode tree
mounted. Everything after that is ``peer chaincode ...`` in the utility
container. Version uniqueness is the network's job: a duplicate version
fails at the peer and its error is surfaced verbatim.
"""

from __future__ import annotations

import json
import logging
import shutil
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from fabctl.core.context import OpsContext
from fabctl.core.errors import MissingArtifactError, UsageError
from fabctl.core.models.action import Receipt
from fabctl.core.models.network import ChaincodeInstance
from fabctl.core.services.artifacts import require, require_plain_name

logger = logging.getLogger(__name__)

_CONTAINER_SRC = "/usr/src/myapp"
_EMPTY_INIT = '{"Args":[]}'


def use_local_toolchain(ctx: OpsContext) -> bool:
    """Whether build/test should run on the host instead of a container."""
    mode = ctx.config.go_toolchain
    if mode == "local":
        return True
    if mode == "container":
        return False
    if shutil.which("go") is None:
        logger.warning("Go binary is missing in your PATH. Running the dockerised version...")
        return False
    return True


def _source_dir(ctx: OpsContext, chaincode_name: str) -> Path:
    require_plain_name("chaincode name", chaincode_name)
    source = ctx.config.chaincode_path / chaincode_name
    if not source.is_dir():
        raise MissingArtifactError(f"chaincode source '{chaincode_name}'", source)
    return source


def build_chaincode(ctx: OpsContext, chaincode_name: str) -> Receipt:
    """Compile the chaincode and discard the produced binary."""
    require(("chaincode name", chaincode_name))
    source = _source_dir(ctx, chaincode_name)
    build = ["go", "build", "-a", "-installsuffix", "nocgo", "./..."]
    failure = f"Failed to build chaincode {chaincode_name}"

    logger.info("Building chaincode %s", chaincode_name)
    if use_local_toolchain(ctx):
        receipt = ctx.run(
            "chaincode:build", "shell", failure,
            argv=build, cwd=str(source), env={"CGO_ENABLED": "0"},
        )
        (source / chaincode_name).unlink(missing_ok=True)
        return receipt

    return ctx.docker_run(
        "chaincode:build", failure,
        image=ctx.config.golang_image_ref,
        volumes=[f"{ctx.config.chaincode_path}:{_CONTAINER_SRC}"],
        workdir=f"{_CONTAINER_SRC}/{chaincode_name}",
        env={"CGO_ENABLED": "0"},
        command=["sh", "-c", f"{' '.join(build)} && rm -rf ./{chaincode_name}"],
    )


def run_chaincode_tests(ctx: OpsContext, chaincode_name: str) -> Receipt:
    """Run the chaincode's unit tests."""
    require(("chaincode name", chaincode_name))
    _source_dir(ctx, chaincode_name)
    test = ["go", "test", f"./{chaincode_name}/...", "-v"]
    failure = f"Unit tests failed for chaincode {chaincode_name}"

    logger.info("Unit testing chaincode %s", chaincode_name)
    if use_local_toolchain(ctx):
        return ctx.run(
            "chaincode:test", "shell", failure,
            argv=test, cwd=str(ctx.config.chaincode_path), env={"CGO_ENABLED": "0"},
        )

    return ctx.docker_run(
        "chaincode:test", failure,
        image=ctx.config.golang_image_ref,
        volumes=[f"{ctx.config.chaincode_path}:{_CONTAINER_SRC}"],
        workdir=_CONTAINER_SRC,
        env={"CGO_ENABLED": "0"},
        command=["sh", "-c", " ".join(test)],
    )


def install_chaincode(ctx: OpsContext, chaincode_name: str, version: str, path: str) -> ChaincodeInstance:
    """Install a chaincode package on the utility peer."""
    require(("chaincode name", chaincode_name), ("chaincode version", version), ("chaincode path", path))

    logger.info("Installing chaincode %s version %s from path %s", chaincode_name, version, path)
    ctx.peer(
        "chaincode:install",
        f"Failed to install chaincode {chaincode_name} version {version}",
        "chaincode", "install",
        "-n", chaincode_name,
        "-v", version,
        "-p", path,
    )
    return ChaincodeInstance(name=chaincode_name, version=version)


def instantiate_chaincode(ctx: OpsContext, chaincode_name: str, version: str, channel_name: str) -> ChaincodeInstance:
    """Instantiate an installed chaincode on a channel."""
    require(("chaincode name", chaincode_name), ("chaincode version", version), ("channel name", channel_name))

    logger.info("Instantiating chaincode %s version %s into channel %s", chaincode_name, version, channel_name)
    ctx.peer(
        "chaincode:instantiate",
        f"Failed to instantiate chaincode {chaincode_name} version {version} on {channel_name}",
        "chaincode", "instantiate",
        "-o", ctx.config.orderer_address,
        "-n", chaincode_name,
        "-v", version,
        "-C", channel_name,
        "-c", _EMPTY_INIT,
    )
    return ChaincodeInstance(name=chaincode_name, version=version, channel=channel_name)


def upgrade_chaincode(ctx: OpsContext, chaincode_name: str, version: str, channel_name: str) -> ChaincodeInstance:
    """Rebuild, retest and reinstall the chaincode, then upgrade it on the channel."""
    require(("chaincode name", chaincode_name), ("chaincode version", version), ("channel name", channel_name))

    build_chaincode(ctx, chaincode_name)
    run_chaincode_tests(ctx, chaincode_name)
    install_chaincode(ctx, chaincode_name, version, f"{ctx.config.chaincode_remote_path}/{chaincode_name}")

    logger.info("Upgrading chaincode %s to version %s on channel %s", chaincode_name, version, channel_name)
    ctx.peer(
        "chaincode:upgrade",
        f"Failed to upgrade chaincode {chaincode_name} to version {version} on {channel_name}",
        "chaincode", "upgrade",
        "-o", ctx.config.orderer_address,
        "-n", chaincode_name,
        "-v", version,
        "-C", channel_name,
        "-c", _EMPTY_INIT,
    )
    return ChaincodeInstance(name=chaincode_name, version=version, channel=channel_name)


def encode_request(request: str | Mapping[str, Any]) -> str:
    """Normalize an invoke/query payload to compact JSON.

    Accepts ``{"Args": [...]}`` as a mapping or a JSON string.
    """
    if isinstance(request, Mapping):
        payload = dict(request)
    else:
        require(("request", request))
        try:
            payload = json.loads(request)
        except json.JSONDecodeError as e:
            raise UsageError(f"Request is not valid JSON: {e}") from e

    if not isinstance(payload, dict) or not isinstance(payload.get("Args"), list):
        raise UsageError('Request must look like {"Args": ["function", "arg", ...]}')
    return json.dumps(payload, separators=(",", ":"))


def _chaincode_call(ctx: OpsContext, verb: str, channel_name: str, chaincode_name: str,
                    request: str | Mapping[str, Any], action_id: str | None = None) -> Receipt:
    require(("channel name", channel_name), ("chaincode name", chaincode_name))
    payload = encode_request(request)
    return ctx.peer(
        action_id or f"chaincode:{verb}",
        f"Chaincode {verb} failed on {chaincode_name}@{channel_name}",
        "chaincode", verb,
        "-o", ctx.config.orderer_address,
        "-C", channel_name,
        "-n", chaincode_name,
        "-c", payload,
    )


def invoke(ctx: OpsContext, channel_name: str, chaincode_name: str,
           request: str | Mapping[str, Any], *, action_id: str | None = None) -> Receipt:
    """Submit a write transaction."""
    return _chaincode_call(ctx, "invoke", channel_name, chaincode_name, request, action_id)


def query(ctx: OpsContext, channel_name: str, chaincode_name: str,
          request: str | Mapping[str, Any]) -> str:
    """Evaluate a read-only call and return the peer's output."""
    return _chaincode_call(ctx, "query", channel_name, chaincode_name, request).output
