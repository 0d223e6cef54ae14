"""Advisory lock around runtime state transitions (bootstrap, teardown).

Two operators starting or stopping the same network at once would race
on compose and on the artifact directories. The lock is a ``fcntl``
exclusive lock on a sidecar file under the network's base path; a
second holder fails immediately instead of waiting.
"""

from __future__ import annotations

import fcntl
import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from fabctl.core.errors import LockError

logger = logging.getLogger(__name__)


@contextmanager
def network_lock(path: Path) -> Iterator[None]:
    """Hold the exclusive network lock for the duration of the context."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a+", encoding="utf-8") as lock_handle:
        try:
            fcntl.flock(lock_handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as e:
            lock_handle.seek(0)
            holder = lock_handle.read().strip() or "unknown"
            raise LockError(f"Network is locked by another operation (pid {holder}): {path}") from e

        lock_handle.seek(0)
        lock_handle.truncate()
        lock_handle.write(str(os.getpid()))
        lock_handle.flush()
        logger.debug("Acquired network lock %s", path)
        try:
            yield
        finally:
            lock_handle.seek(0)
            lock_handle.truncate()
            fcntl.flock(lock_handle.fileno(), fcntl.LOCK_UN)
            logger.debug("Released network lock %s", path)
