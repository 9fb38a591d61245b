"""
Unit tests for the single-flight dispatcher.

Async code is driven with ``asyncio.run`` from plain test functions.
"""

import asyncio
import threading
import time
from datetime import datetime, timedelta
from unittest.mock import Mock

from libs.errors import PersistenceError
from libs.ingestion import Dispatcher, IngestionWorker, RunOutcome, RunReport


class ScriptedWorker:
    """Worker returning scripted outcomes, tracking concurrent runs."""

    def __init__(self, outcomes, gate=None):
        self.outcomes = list(outcomes)
        self.gate = gate
        self.calls = 0
        self.active = 0
        self.max_active = 0
        self.entered = threading.Event()
        self._lock = threading.Lock()

    def run_once(self):
        with self._lock:
            self.calls += 1
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        self.entered.set()
        try:
            if self.gate is not None:
                self.gate.wait(timeout=5)
            outcome = self.outcomes.pop(0) if self.outcomes else RunOutcome.NO_WORK
            if isinstance(outcome, Exception):
                raise outcome
            return RunReport(outcome)
        finally:
            with self._lock:
                self.active -= 1


async def wait_for(event: threading.Event) -> None:
    await asyncio.to_thread(event.wait, 5)


# =============================================================================
# Test: run
# =============================================================================


def test_run_loops_until_no_work():
    worker = ScriptedWorker([RunOutcome.COMPLETED, RunOutcome.FAILED, RunOutcome.COMPLETED])
    dispatcher = Dispatcher(worker)

    handled = asyncio.run(dispatcher.run())

    assert handled == 3
    assert worker.calls == 4
    assert dispatcher.last_report.outcome == RunOutcome.NO_WORK
    assert dispatcher.busy is False


def test_unavailable_stops_the_loop():
    worker = ScriptedWorker([RunOutcome.COMPLETED, RunOutcome.UNAVAILABLE, RunOutcome.COMPLETED])
    dispatcher = Dispatcher(worker)

    assert asyncio.run(dispatcher.run()) == 1
    assert worker.calls == 2
    assert dispatcher.busy is False


def test_busy_is_reset_after_worker_crash():
    worker = ScriptedWorker([RuntimeError("boom"), RunOutcome.COMPLETED])
    dispatcher = Dispatcher(worker)

    async def scenario():
        first = await dispatcher.run()
        assert dispatcher.busy is False
        second = await dispatcher.run()
        return first, second

    assert asyncio.run(scenario()) == (0, 1)


def test_single_flight_under_concurrent_triggers():
    gate = threading.Event()
    worker = ScriptedWorker([RunOutcome.COMPLETED], gate=gate)
    dispatcher = Dispatcher(worker)

    async def scenario():
        first = asyncio.create_task(dispatcher.run())
        await wait_for(worker.entered)
        assert dispatcher.busy is True
        others = await asyncio.gather(*(dispatcher.run() for _ in range(5)))
        gate.set()
        return await first, others

    handled, others = asyncio.run(scenario())

    assert others == [0, 0, 0, 0, 0]
    assert handled == 1
    assert worker.max_active == 1


def test_trigger_while_busy_causes_one_more_attempt():
    gate = threading.Event()
    # The active run sees NO_WORK, but a trigger arrived while it was busy.
    worker = ScriptedWorker([RunOutcome.NO_WORK, RunOutcome.COMPLETED], gate=gate)
    dispatcher = Dispatcher(worker)

    async def scenario():
        first = asyncio.create_task(dispatcher.run())
        await wait_for(worker.entered)
        assert dispatcher.notify_job_created() is None
        gate.set()
        return await first

    assert asyncio.run(scenario()) == 1
    assert worker.calls == 3


def test_no_extra_attempt_without_trigger():
    worker = ScriptedWorker([])
    asyncio.run(Dispatcher(worker).run())
    assert worker.calls == 1


# =============================================================================
# Test: notify / start / stop
# =============================================================================


def test_notify_schedules_a_run():
    worker = ScriptedWorker([RunOutcome.COMPLETED])
    dispatcher = Dispatcher(worker)

    async def scenario():
        task = dispatcher.notify_job_created()
        assert task is not None
        handled = await task
        await dispatcher.wait_idle()
        return handled

    assert asyncio.run(scenario()) == 1


def test_poll_picks_up_work():
    worker = ScriptedWorker([RunOutcome.NO_WORK, RunOutcome.NO_WORK, RunOutcome.COMPLETED])
    dispatcher = Dispatcher(worker, poll_interval=0.01)

    async def scenario():
        dispatcher.start()
        deadline = time.monotonic() + 5
        while worker.calls < 4 and time.monotonic() < deadline:
            await asyncio.sleep(0.01)
        await dispatcher.stop()

    asyncio.run(scenario())

    assert worker.calls >= 4
    assert dispatcher.busy is False


def test_stop_waits_for_in_flight_run():
    gate = threading.Event()
    worker = ScriptedWorker([RunOutcome.COMPLETED], gate=gate)
    dispatcher = Dispatcher(worker)

    async def scenario():
        dispatcher.start()
        await wait_for(worker.entered)
        stopping = asyncio.create_task(dispatcher.stop())
        await asyncio.sleep(0.05)
        assert not stopping.done()
        gate.set()
        await stopping

    asyncio.run(scenario())

    assert worker.calls == 2
    assert dispatcher.busy is False


# =============================================================================
# Test: with the real worker
# =============================================================================


def test_failed_job_does_not_stop_the_loop(mongo_store, object_store, jobs_collection,
                                           records_collection):
    object_store.put_lines("good.txt", ["hello", "", "world"])
    mongo_store.jobs.create("missing.txt")
    mongo_store.jobs.create("good.txt")
    dispatcher = Dispatcher(IngestionWorker(mongo_store.jobs, mongo_store.records, object_store))

    handled = asyncio.run(dispatcher.run())

    assert handled == 2
    statuses = {doc["object_key"]: doc["status"] for doc in jobs_collection.find()}
    assert statuses == {"missing.txt": "FAILED", "good.txt": "COMPLETED"}
    assert records_collection.count_documents({"original_file": "good.txt"}) == 2


def test_jobs_completed_in_creation_order(mongo_store, object_store, jobs_collection):
    base = datetime(2024, 1, 1)
    for offset, key in [(2, "t3.txt"), (0, "t1.txt"), (1, "t2.txt")]:
        object_store.put_lines(key, [key])
        jobs_collection.insert_one(
            {"object_key": key, "status": "PENDING", "created_at": base + timedelta(seconds=offset)}
        )
    worker = IngestionWorker(mongo_store.jobs, mongo_store.records, object_store)
    completed = []
    run_once = worker.run_once

    def recording_run_once():
        report = run_once()
        if report.outcome == RunOutcome.COMPLETED:
            completed.append(report.job.object_key)
        return report

    worker.run_once = recording_run_once

    assert asyncio.run(Dispatcher(worker).run()) == 3
    assert completed == ["t1.txt", "t2.txt", "t3.txt"]
    assert object_store.opened == ["t1.txt", "t2.txt", "t3.txt"]


def test_run_ends_when_job_store_rejects_writes(mongo_store, object_store, jobs_collection):
    jobs = Mock(wraps=mongo_store.jobs)
    jobs.transition.side_effect = PersistenceError("not authorized to write")
    mongo_store.jobs.create("a.txt")
    dispatcher = Dispatcher(IngestionWorker(jobs, mongo_store.records, object_store))

    async def scenario():
        return await asyncio.wait_for(dispatcher.run(), timeout=5)

    assert asyncio.run(scenario()) == 0
    assert jobs.claim_oldest_pending.call_count == 1
    assert dispatcher.last_report.outcome == RunOutcome.UNAVAILABLE
    assert dispatcher.busy is False
    assert jobs_collection.find_one()["status"] == "PENDING"


def test_stop_returns_when_job_store_rejects_writes(mongo_store, object_store):
    jobs = Mock(wraps=mongo_store.jobs)
    jobs.transition.side_effect = PersistenceError("not authorized to write")
    mongo_store.jobs.create("a.txt")
    dispatcher = Dispatcher(IngestionWorker(jobs, mongo_store.records, object_store))

    async def scenario():
        dispatcher.start()
        await asyncio.wait_for(dispatcher.stop(), timeout=5)

    asyncio.run(scenario())

    assert dispatcher.busy is False
