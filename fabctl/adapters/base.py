"""
Adapter base — the seam between services and external tools.

Services build Actions and hand them to the registry; an Adapter turns
an Action into a subprocess and the subprocess into a Receipt. Tests
swap the real adapters for MockAdapters at this seam.
"""

from __future__ import annotations

import shutil
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from fabctl.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """An Action plus the per-call settings the registry resolved for it."""

    action: Action
    cwd: str | None = None
    dry_run: bool = False
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def working_dir(self) -> str | None:
        """``params["cwd"]`` if the action set one, else the registry default."""
        return self.params.get("cwd") or self.cwd


class Adapter(ABC):
    """Runs one kind of external tool.

    Subclasses set ``name`` (the key Actions route on) and ``binary``
    (the executable whose presence makes the adapter available).
    ``validate`` and ``execute`` must not raise: problems come back as
    ``(False, reason)`` or a failed Receipt.
    """

    name: str = ""
    binary: str = ""

    def is_available(self) -> bool:
        return bool(self.binary) and shutil.which(self.binary) is not None

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Check params before anything runs; returns ``(ok, reason)``."""

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Run the action and describe the outcome."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"
