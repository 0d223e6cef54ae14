"""
Tests for the concurrent load generator.
"""

from __future__ import annotations

import json
import random
import threading
from collections import Counter

import pytest

from fabctl.core.errors import UsageError
from fabctl.core.models.action import Receipt
from fabctl.core.services.benchmark import KEY_ALPHABET, LoadReport, WorkerResult, random_key, run_load


def _payloads(docker):
    return [json.loads(c.params["command"][-1]) for c in docker.call_log]


class TestRandomKey:
    def test_alphabet_and_length(self):
        key = random_key(random.Random(7))
        assert len(key) == 14
        assert set(key) <= set(KEY_ALPHABET)

    def test_custom_length(self):
        assert len(random_key(random.Random(7), 6)) == 6


class TestRunLoad:
    def test_jobs_times_entries(self, ops, docker):
        report = run_load(ops, 3, 4)

        assert docker.call_count == 12
        assert set(docker.called_ids) == {"benchmark:invoke"}
        assert report.attempted == 12
        assert report.succeeded == 12
        assert report.failed == 0
        assert [w.worker_id for w in report.workers] == [1, 2, 3]
        assert all(w.attempted == 4 for w in report.workers)

    def test_workers_run_concurrently(self, ops, docker):
        # Each invocation blocks until all three workers are inside one;
        # run one after another, the barrier times out and every call fails.
        barrier = threading.Barrier(3, timeout=5)

        def _rendezvous(ctx):
            barrier.wait()

        docker.set_handler("benchmark:invoke", _rendezvous)
        report = run_load(ops, 3, 2)

        assert not barrier.broken
        assert report.attempted == 6
        assert report.succeeded == 6
        assert report.failed == 0

    def test_put_payloads(self, ops, docker):
        run_load(ops, 2, 3)

        payloads = _payloads(docker)
        assert all(p["Args"][0] == "put" for p in payloads)
        assert all(len(p["Args"][1]) == 14 for p in payloads)
        # Each worker writes values 1..entries
        assert Counter(p["Args"][2] for p in payloads) == {"1": 2, "2": 2, "3": 2}

    def test_default_target_from_config(self, ops, docker):
        run_load(ops, 1, 1)
        command = docker.call_log[0].params["command"]
        assert command[command.index("-C") + 1] == "mychannel"
        assert command[command.index("-n") + 1] == "mychaincode"

    def test_explicit_target(self, ops, docker):
        run_load(ops, 1, 1, channel="bench", chaincode="kv")
        command = docker.call_log[0].params["command"]
        assert command[command.index("-C") + 1] == "bench"
        assert command[command.index("-n") + 1] == "kv"

    def test_failed_invocations_are_counted(self, ops, docker):
        lock = threading.Lock()
        calls = []

        def _every_other(ctx):
            with lock:
                calls.append(1)
                n = len(calls)
            if n % 2 == 0:
                return Receipt.failure(adapter="docker", action_id="benchmark:invoke", error="endorsement failure")
            return None

        docker.set_handler("benchmark:invoke", _every_other)
        report = run_load(ops, 2, 5)

        assert report.attempted == 10
        assert report.failed == 5
        assert report.succeeded == 5
        assert sum(w.attempted for w in report.workers) == 10

    def test_all_failed_still_completes(self, ops, docker):
        docker.set_failure("benchmark:invoke", error="no such container: cli")
        report = run_load(ops, 2, 2)
        assert report.failed == 4
        assert report.succeeded == 0

    @pytest.mark.parametrize(
        "jobs, entries, message",
        [
            (None, 5, "Provide a number of jobs to run in parallel"),
            ("", 5, "Provide a number of jobs to run in parallel"),
            (2, None, "Provide a number of entries per job"),
            ("two", 5, "must be an integer"),
            (0, 5, "at least 1"),
            (2, -1, "at least 1"),
        ],
    )
    def test_usage_errors_run_nothing(self, ops, docker, jobs, entries, message):
        with pytest.raises(UsageError, match=message):
            run_load(ops, jobs, entries)
        assert docker.call_count == 0

    def test_numeric_strings(self, ops, docker):
        report = run_load(ops, "2", "2")
        assert report.attempted == 4


class TestLoadReport:
    def _report(self, elapsed: float) -> LoadReport:
        return LoadReport(
            jobs=2,
            entries_per_job=2,
            elapsed_seconds=elapsed,
            workers=[
                WorkerResult(worker_id=1, attempted=2, succeeded=2, keys=["A", "B"]),
                WorkerResult(worker_id=2, attempted=2, succeeded=1, failed=1, keys=["B", "C"]),
            ],
        )

    def test_totals(self):
        report = self._report(2.0)
        assert report.attempted == 4
        assert report.succeeded == 3
        assert report.failed == 1
        # A colliding key still counts as an attempted entry
        assert report.distinct_keys == 3
        assert report.throughput == 2.0
        assert report.confirmed_throughput == 1.5

    def test_zero_elapsed(self):
        assert self._report(0.0).throughput == 4.0

    def test_to_dict(self):
        data = self._report(2.0).to_dict()
        assert data["attempted"] == 4
        assert data["distinct_keys"] == 3
        assert data["throughput"] == 2.0
