"""
Operation history — one NDJSON line per start, stop, install, or load run.

The ledger lives next to the network (``{base_path}/.state/audit.ndjson``)
so ``fabctl history`` shows what happened to *this* network and when.
Lines are only ever appended.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from fabctl.core.models.network import NetworkConfig

logger = logging.getLogger(__name__)

AUDIT_FILE = "audit.ndjson"


class AuditEntry(BaseModel):
    """A single history line."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    operation_id: str = ""
    operation_type: str = ""       # start, stop, install, benchmark

    channel: str = ""
    chaincode: str = ""

    status: str = ""               # ok, failed
    duration_ms: int = 0
    errors: list[str] = Field(default_factory=list)

    # Stage report, teardown result, or load totals
    context: dict[str, Any] = Field(default_factory=dict)


class AuditWriter:
    """Append-only writer/reader for the operation history."""

    def __init__(self, path: Path):
        self._path = path

    @classmethod
    def for_network(cls, config: NetworkConfig) -> AuditWriter:
        return cls(config.state_dir / AUDIT_FILE)

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: AuditEntry) -> None:
        """Append one entry.

        A history that cannot be written is logged, not fatal: the
        network operation it records has already happened.
        """
        line = json.dumps(entry.model_dump(mode="json"), ensure_ascii=False) + "\n"
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
        except OSError as e:
            logger.error("Failed to write history entry to %s: %s", self._path, e)
            return
        logger.debug("History entry written: %s/%s", entry.operation_type, entry.operation_id)

    def read_all(self) -> list[AuditEntry]:
        """All entries, oldest first. Corrupt lines are skipped with a warning."""
        if not self._path.is_file():
            return []

        entries = []
        with self._path.open("r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(AuditEntry.model_validate(json.loads(line)))
                except (json.JSONDecodeError, ValidationError) as e:
                    logger.warning("Skipping corrupt history entry at line %d: %s", line_num, e)
        return entries

    def read_recent(self, n: int = 20) -> list[AuditEntry]:
        return self.read_all()[-n:] if n > 0 else []

    def entry_count(self) -> int:
        if not self._path.is_file():
            return 0
        with self._path.open("r", encoding="utf-8") as f:
            return sum(1 for line in f if line.strip())
