"""
Action and Receipt — one delegated tool call and its outcome.

Every docker, compose, generator-tool and peer invocation fabctl makes
is an Action routed through the adapter registry. What comes back is
always a Receipt, never an exception: a non-zero exit is
``status="failed"`` with the tool's stderr kept verbatim in ``error``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

Status = Literal["ok", "skipped", "failed"]


def _utcnow() -> str:
    return datetime.now(UTC).isoformat()


class Action(BaseModel):
    """A tool call to make.

    ``id`` names the step (``crypto:generate``, ``channel:join``,
    ``benchmark:invoke``...) and is what logs and test doubles key on.
    """

    id: str
    adapter: str                    # "docker" or "shell"
    params: dict[str, Any] = Field(default_factory=dict)


class Receipt(BaseModel):
    """What a tool call produced."""

    adapter: str
    action_id: str
    status: Status = "ok"

    output: str = ""                # stdout, stripped
    error: str | None = None        # stderr (or a synthesized reason) on failure
    return_code: int | None = None  # None when the process never ran

    started_at: str = Field(default_factory=_utcnow)
    duration_ms: int = 0
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(cls, adapter: str, action_id: str, output: str = "", **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, output=output, **kwargs)

    @classmethod
    def failure(cls, adapter: str, action_id: str, error: str, **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="failed", error=error, **kwargs)

    @classmethod
    def skip(cls, adapter: str, action_id: str, reason: str = "", **kwargs: Any) -> Receipt:
        """A call that was deliberately not made (dry run)."""
        return cls(adapter=adapter, action_id=action_id, status="skipped", output=reason, **kwargs)
