"""
Pipeline executor — run named stages in order, stop at the first failure.

Each stage is a callable that either returns (success) or raises a
FabctlError. Stages are synchronous: stage N's side effects are on disk
or on the network before stage N+1 starts. When a stage raises, the
remaining stages are recorded as skipped and StageFailedError is raised
with the cause attached, untranslated.

Flow:
    plan → run stage → record result → next stage | abort
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

from fabctl.core.errors import FabctlError, StageFailedError

logger = logging.getLogger(__name__)


@dataclass
class Stage:
    """One step of a pipeline."""

    name: str
    run: Callable[[], Any]
    description: str = ""


@dataclass
class StageResult:
    name: str
    status: Literal["ok", "failed", "skipped"] = "ok"
    duration_ms: int = 0
    error: str | None = None
    value: Any = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "status": self.status,
            "duration_ms": self.duration_ms,
            "error": self.error,
        }


@dataclass
class PipelineReport:
    """Result of executing a pipeline."""

    operation_id: str = ""
    operation: str = ""
    results: list[StageResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.status == "ok")

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.status == "failed")

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.status == "skipped")

    @property
    def status(self) -> str:
        return "failed" if self.failed else "ok"

    @property
    def duration_ms(self) -> int:
        return sum(r.duration_ms for r in self.results)

    def result(self, name: str) -> StageResult | None:
        for r in self.results:
            if r.name == name:
                return r
        return None

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "operation": self.operation,
            "status": self.status,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "stages": [r.to_dict() for r in self.results],
        }


def run_pipeline(
    stages: list[Stage],
    operation: str = "",
    operation_id: str | None = None,
) -> PipelineReport:
    """Execute stages in order.

    Args:
        stages: Stages to run.
        operation: Name of the whole pipeline (for reports and audit).
        operation_id: Unique id; generated if not given.

    Returns:
        PipelineReport with one result per stage.

    Raises:
        StageFailedError: The first stage that raised a FabctlError.
    """
    report = PipelineReport(
        operation_id=operation_id or generate_operation_id(),
        operation=operation,
    )

    for index, stage in enumerate(stages):
        logger.info("▶ %s", stage.description or stage.name)
        start = time.monotonic()
        try:
            value = stage.run()
        except FabctlError as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            report.results.append(
                StageResult(name=stage.name, status="failed", duration_ms=elapsed_ms, error=str(e))
            )
            for pending in stages[index + 1:]:
                report.results.append(StageResult(name=pending.name, status="skipped"))
            logger.error("✗ %s → %s", stage.name, e)
            raise StageFailedError(stage.name, e, report) from e

        elapsed_ms = int((time.monotonic() - start) * 1000)
        report.results.append(
            StageResult(name=stage.name, status="ok", duration_ms=elapsed_ms, value=value)
        )
        logger.info("✓ %s (%dms)", stage.name, elapsed_ms)

    return report


def generate_operation_id() -> str:
    """Generate a unique operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"op-{now}-{short}"
