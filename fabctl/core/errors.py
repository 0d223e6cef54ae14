"""
Error taxonomy for fabctl operations.

Adapters never raise; services turn failed receipts and failed checks
into the exceptions below. The CLI catches ``FabctlError``, prints the
message and exits 1. A declined confirmation prompt is not an error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fabctl.core.engine.executor import PipelineReport
    from fabctl.core.models.action import Receipt


class FabctlError(Exception):
    """Base class for every failure fabctl reports to the operator."""


class ConfigError(FabctlError):
    """Raised when network configuration is invalid or missing."""


class UsageError(FabctlError):
    """A required argument is missing or malformed. Nothing was run."""


class MissingArtifactError(FabctlError):
    """A prerequisite file or directory does not exist."""

    def __init__(self, what: str, path: object):
        self.what = what
        self.path = path
        super().__init__(f"Missing prerequisite {what}: {path}")


class ToolError(FabctlError):
    """A delegated external call exited non-zero.

    ``str(err)`` is the operation's message followed by the tool's own
    error output, untouched.
    """

    def __init__(self, message: str, receipt: Receipt | None = None):
        self.message = message
        self.receipt = receipt
        detail = receipt.error if receipt is not None and receipt.error else ""
        super().__init__(f"{message}: {detail}" if detail else message)


class RuntimeNotReadyError(FabctlError):
    """The network runtime did not answer the readiness probe in time."""


class DependencyError(FabctlError):
    """A required local tool (docker, go...) is not installed."""


class LockError(FabctlError):
    """Another operator is already bootstrapping or tearing down."""


class StageFailedError(FabctlError):
    """A bootstrap stage failed; later stages were not run."""

    def __init__(self, stage: str, cause: FabctlError, report: PipelineReport):
        self.stage = stage
        self.cause = cause
        self.report = report
        super().__init__(f"Stage '{stage}' failed: {cause}")
