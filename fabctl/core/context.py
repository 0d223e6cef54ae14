"""
Operation context — what every service receives instead of globals.

An OpsContext bundles the immutable NetworkConfig with the adapter
registry and the interactive hooks (confirmation prompt, sleep, clock).
Entry points build one at startup and pass it down:

    - CLI:    main.py → OpsContext(config, default_registry(), confirm=prompt)
    - Tests:  OpsContext(config, registry_with_mock, confirm=lambda _: True)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from fabctl.adapters.registry import AdapterRegistry
from fabctl.core.errors import ToolError
from fabctl.core.models.action import Action, Receipt
from fabctl.core.models.network import NetworkConfig

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]


def decline(_message: str) -> bool:
    """Non-interactive default: never approve destructive steps."""
    return False


@dataclass(frozen=True)
class OpsContext:
    config: NetworkConfig
    registry: AdapterRegistry
    confirm: Confirm = decline
    sleep: Callable[[float], None] = time.sleep
    clock: Callable[[], float] = time.monotonic

    def call(self, action_id: str, adapter: str, **params: Any) -> Receipt:
        """Dispatch one external call and return its receipt, even if failed."""
        action = Action(id=action_id, adapter=adapter, params=params)
        receipt = self.registry.execute_action(action)
        if receipt.failed:
            logger.debug("%s failed: %s", action_id, receipt.error)
        return receipt

    def run(self, action_id: str, adapter: str, failure: str, **params: Any) -> Receipt:
        """Dispatch one external call; a failed receipt raises ToolError."""
        receipt = self.call(action_id, adapter, **params)
        if receipt.failed:
            raise ToolError(failure, receipt)
        return receipt

    def docker_run(self, action_id: str, failure: str, **params: Any) -> Receipt:
        return self.run(action_id, "docker", failure, operation="run", **params)

    def peer(self, action_id: str, failure: str, *args: str) -> Receipt:
        """Run ``peer <args>`` inside the utility container."""
        return self.run(
            action_id,
            "docker",
            failure,
            operation="exec",
            container=self.config.util_container,
            command=["peer", *args],
        )
