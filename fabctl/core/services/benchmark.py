"""
Load generator — concurrent write throughput against a live network.

``run_load(ctx, jobs, entries)`` starts ``jobs`` worker threads. Each
performs ``entries`` sequential ``put(randomKey, i)`` invocations and
pushes a WorkerResult onto a queue when done. Failed invocations are
counted, never retried. Workers share nothing but the queue; keys are
random per worker, so two workers may write the same key. Every
invocation still counts as one attempted entry.
"""

from __future__ import annotations

import logging
import queue
import random
import string
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from fabctl.core.context import OpsContext
from fabctl.core.errors import ToolError, UsageError
from fabctl.core.services.artifacts import require
from fabctl.core.services.chaincode_ops import invoke

logger = logging.getLogger(__name__)

KEY_ALPHABET = string.ascii_uppercase + string.digits
DEFAULT_KEY_LENGTH = 14


@dataclass
class WorkerResult:
    worker_id: int
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    keys: list[str] = field(default_factory=list)


@dataclass
class LoadReport:
    jobs: int
    entries_per_job: int
    elapsed_seconds: float = 0.0
    workers: list[WorkerResult] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return self.jobs * self.entries_per_job

    @property
    def succeeded(self) -> int:
        return sum(w.succeeded for w in self.workers)

    @property
    def failed(self) -> int:
        return sum(w.failed for w in self.workers)

    @property
    def distinct_keys(self) -> int:
        return len({key for w in self.workers for key in w.keys})

    @property
    def throughput(self) -> float:
        """Attempted invocations per second."""
        if self.elapsed_seconds <= 0:
            return float(self.attempted)
        return self.attempted / self.elapsed_seconds

    @property
    def confirmed_throughput(self) -> float:
        """Successful invocations per second."""
        if self.elapsed_seconds <= 0:
            return float(self.succeeded)
        return self.succeeded / self.elapsed_seconds

    def to_dict(self) -> dict:
        return {
            "jobs": self.jobs,
            "entries_per_job": self.entries_per_job,
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "distinct_keys": self.distinct_keys,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "throughput": round(self.throughput, 3),
            "confirmed_throughput": round(self.confirmed_throughput, 3),
        }


def random_key(rng: random.Random, length: int = DEFAULT_KEY_LENGTH) -> str:
    return "".join(rng.choice(KEY_ALPHABET) for _ in range(length))


def _count(label: str, value: object, missing: str) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise UsageError(missing)
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise UsageError(f"{label} must be an integer, got {value!r}") from e
    if number < 1:
        raise UsageError(f"{label} must be at least 1, got {number}")
    return number


def _worker(ctx: OpsContext, worker_id: int, entries: int, channel: str,
            chaincode: str, key_length: int, results: queue.Queue) -> None:
    rng = random.Random()
    result = WorkerResult(worker_id=worker_id)
    try:
        for i in range(1, entries + 1):
            key = random_key(rng, key_length)
            result.keys.append(key)
            result.attempted += 1
            try:
                invoke(ctx, channel, chaincode, {"Args": ["put", key, str(i)]},
                       action_id="benchmark:invoke")
            except ToolError as e:
                result.failed += 1
                logger.debug("worker %d: invoke %d failed: %s", worker_id, i, e)
            else:
                result.succeeded += 1
    finally:
        results.put(result)


def run_load(
    ctx: OpsContext,
    jobs,
    entries,
    *,
    channel: str | None = None,
    chaincode: str | None = None,
    key_length: int = DEFAULT_KEY_LENGTH,
) -> LoadReport:
    """Run ``jobs`` concurrent workers of ``entries`` writes each.

    Blocks until every worker is done, then reports elapsed wall-clock
    time and attempted/succeeded/failed totals.
    """
    jobs = _count("Jobs", jobs, "Provide a number of jobs to run in parallel")
    entries = _count("Entries", entries, "Provide a number of entries per job")
    channel = channel or ctx.config.benchmark_channel
    chaincode = chaincode or ctx.config.benchmark_chaincode
    require(("channel name", channel), ("chaincode name", chaincode))

    logger.info("Running in parallel: jobs=%d entries=%d target=%s@%s", jobs, entries, chaincode, channel)
    results: queue.Queue[WorkerResult] = queue.Queue()
    report = LoadReport(jobs=jobs, entries_per_job=entries)

    start = ctx.clock()
    with ThreadPoolExecutor(max_workers=jobs, thread_name_prefix="fabctl-load") as pool:
        futures = [
            pool.submit(_worker, ctx, worker_id, entries, channel, chaincode, key_length, results)
            for worker_id in range(1, jobs + 1)
        ]
        for future in futures:
            future.result()
    report.elapsed_seconds = ctx.clock() - start

    while not results.empty():
        report.workers.append(results.get_nowait())
    report.workers.sort(key=lambda w: w.worker_id)

    logger.info(
        "Load finished: %d attempted, %d succeeded, %d failed in %.2fs",
        report.attempted, report.succeeded, report.failed, report.elapsed_seconds,
    )
    return report
