"""
Adapter registry — routes every Action to the adapter named in it.

Services hold a registry (through OpsContext) and never touch an
adapter directly. ``execute_action`` always returns a Receipt: an
unknown adapter, invalid params, or an adapter that raises all become
failed receipts.

In mock mode every action succeeds without running anything, or is
sent to a single custom mock adapter when one is given.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from fabctl.adapters.base import Adapter, ExecutionContext
from fabctl.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    def __init__(self, mock_mode: bool = False):
        self._adapters: dict[str, Adapter] = {}
        self._mock_mode = mock_mode
        self._mock_adapter: Adapter | None = None

    @property
    def mock_mode(self) -> bool:
        return self._mock_mode

    def set_mock_mode(self, enabled: bool, mock_adapter: Adapter | None = None) -> None:
        self._mock_mode = enabled
        self._mock_adapter = mock_adapter

    def register(self, adapter: Adapter) -> None:
        if adapter.name in self._adapters:
            logger.warning("Replacing adapter %r", adapter.name)
        self._adapters[adapter.name] = adapter

    def unregister(self, name: str) -> None:
        self._adapters.pop(name, None)

    def get(self, name: str) -> Adapter | None:
        return self._adapters.get(name)

    def list_adapters(self) -> list[str]:
        return list(self._adapters)

    def is_available(self, name: str) -> bool:
        """Whether ``name`` is registered and its binary is installed."""
        if self._mock_mode:
            return True
        adapter = self._adapters.get(name)
        return adapter is not None and adapter.is_available()

    def adapter_status(self) -> dict[str, dict[str, Any]]:
        return {
            name: {
                "name": name,
                "available": self.is_available(name),
                "type": type(adapter).__name__,
            }
            for name, adapter in self._adapters.items()
        }

    def _resolve(self, action: Action) -> Adapter | None:
        if self._mock_mode:
            return self._mock_adapter
        return self._adapters.get(action.adapter)

    def execute_action(self, action: Action, cwd: str | None = None, dry_run: bool = False) -> Receipt:
        """Validate and run one action.

        Args:
            action: What to run; ``action.adapter`` picks the adapter.
            cwd: Working directory unless the action sets ``params["cwd"]``.
            dry_run: Validate only; returns a skipped receipt.
        """
        start = time.monotonic()
        context = ExecutionContext(action=action, cwd=cwd, dry_run=dry_run, params=action.params)

        def failed(error: str) -> Receipt:
            return Receipt.failure(adapter=action.adapter, action_id=action.id, error=error)

        adapter = self._resolve(action)
        if adapter is None and self._mock_mode:
            return Receipt.success(
                adapter=action.adapter,
                action_id=action.id,
                output=f"[mock] {action.adapter}:{action.id} executed",
                return_code=0,
                metadata={"mock": True, "dry_run": dry_run},
            )
        if adapter is None:
            return failed(f"No adapter registered for '{action.adapter}'")

        try:
            valid, reason = adapter.validate(context)
        except Exception as e:
            logger.error("Adapter %s raised during validation of %s: %s", adapter.name, action.id, e)
            return failed(f"Validation error: {e}")
        if not valid:
            return failed(f"Validation failed: {reason}")

        if dry_run:
            return Receipt.skip(
                adapter=action.adapter,
                action_id=action.id,
                reason=f"[dry-run] Would execute {action.adapter}:{action.id}",
                metadata={"dry_run": True},
            )

        try:
            receipt = adapter.execute(context)
        except Exception as e:
            # An adapter broke its never-raise contract
            logger.error("Adapter %s raised during %s: %s", adapter.name, action.id, e)
            receipt = failed(f"Unexpected error: {e}")

        receipt.duration_ms = int((time.monotonic() - start) * 1000)
        return receipt


def default_registry(mock_mode: bool = False) -> AdapterRegistry:
    """Registry with the docker and shell adapters."""
    from fabctl.adapters.containers.docker import DockerAdapter
    from fabctl.adapters.shell.command import ShellCommandAdapter

    registry = AdapterRegistry(mock_mode=mock_mode)
    registry.register(DockerAdapter())
    registry.register(ShellCommandAdapter())
    return registry
