"""Tests for Worker.run_once and WorkerPool.run_until_idle."""

import logging
import threading
from typing import List

from leadpipe.config import WorkerConfig
from leadpipe.leadsearch import LeadSearchService
from leadpipe.models import Job, JobSpec
from leadpipe.schema import JobStatus, JobType, LeadSearchStatus
from leadpipe.worker import MAX_DRAIN_ERRORS, Worker, WorkerPool


class RecordingHandler:
    def __init__(self, fail_with: Exception = None) -> None:  # type: ignore[assignment]
        self.fail_with = fail_with
        self.handled: List[int] = []

    def handle(self, job: Job) -> None:
        self.handled.append(job.id)
        if self.fail_with is not None:
            raise self.fail_with


class RecordingAlerter:
    def __init__(self) -> None:
        self.calls: List[tuple] = []

    def job_failed(self, job_id, job_type, lead_search_id, error) -> bool:  # type: ignore[no-untyped-def]
        self.calls.append((job_id, job_type, lead_search_id, error))
        return True


class FanOutHandler:
    """Enqueues `count` ENRICHMENT follow-ups for every job it handles."""

    def __init__(self, queue, count: int) -> None:  # type: ignore[no-untyped-def]
        self.queue = queue
        self.count = count

    def handle(self, job: Job) -> None:
        for _ in range(self.count):
            self.queue.enqueue(JobSpec(type=JobType.ENRICHMENT, lead_search_id=job.lead_search_id))


class RendezvousHandler:
    """Blocks until `parties` jobs are being handled at the same time."""

    def __init__(self, parties: int) -> None:
        self.barrier = threading.Barrier(parties)
        self.handled: List[int] = []

    def handle(self, job: Job) -> None:
        self.barrier.wait(timeout=5)
        self.handled.append(job.id)


class FlakyWorker(Worker):
    """run_once() raises for the first `failures` calls, like a database that is restarting."""

    def __init__(self, *args, failures: int, **kwargs) -> None:  # type: ignore[no-untyped-def]
        super().__init__(*args, **kwargs)
        self.failures = failures
        self.calls = 0

    def run_once(self):  # type: ignore[no-untyped-def]
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError("connection refused")
        return super().run_once()


class TestRunOnce:
    def test_idle(self, queue, progress) -> None:  # type: ignore[no-untyped-def]
        assert Worker(queue, {}, progress).run_once() is None

    def test_success_acks_done(self, queue, progress) -> None:  # type: ignore[no-untyped-def]
        handler = RecordingHandler()
        job = queue.enqueue(JobSpec(type=JobType.CRAWL, target_url="https://acme.co.uk"))

        outcome = Worker(queue, {JobType.CRAWL: handler}, progress).run_once()

        assert outcome.ok is True  # type: ignore[union-attr]
        assert handler.handled == [job.id]
        assert queue.get(job.id).status == JobStatus.DONE

    def test_failure_recorded_and_alerted(self, queue, progress) -> None:  # type: ignore[no-untyped-def]
        alerter = RecordingAlerter()
        job = queue.enqueue(JobSpec(type=JobType.CRAWL, target_url="https://acme.co.uk"))
        worker = Worker(queue, {JobType.CRAWL: RecordingHandler(RuntimeError("site exploded"))}, progress, alerter)

        outcome = worker.run_once()

        assert outcome.ok is False  # type: ignore[union-attr]
        assert outcome.error == "RuntimeError: site exploded"  # type: ignore[union-attr]
        stored = queue.get(job.id)
        assert (stored.status, stored.last_error) == (JobStatus.FAILED, "RuntimeError: site exploded")
        assert alerter.calls == [(job.id, JobType.CRAWL, None, "RuntimeError: site exploded")]

    def test_missing_handler_fails_job(self, queue, progress) -> None:  # type: ignore[no-untyped-def]
        job = queue.enqueue(JobSpec(type=JobType.ENRICHMENT))

        outcome = Worker(queue, {}, progress).run_once()

        assert outcome.ok is False  # type: ignore[union-attr]
        assert outcome.error.startswith("LookupError")  # type: ignore[union-attr]
        assert queue.get(job.id).status == JobStatus.FAILED

    def test_discovery_failure_fails_search(self, store, queue, progress, make_lead_search) -> None:  # type: ignore[no-untyped-def]
        ls = make_lead_search(status=LeadSearchStatus.PENDING)
        queue.enqueue(JobSpec(type=JobType.DISCOVERY, lead_search_id=ls))
        worker = Worker(queue, {JobType.DISCOVERY: RecordingHandler(ValueError("bad query"))}, progress)

        worker.run_once()

        record = LeadSearchService(store, queue).get(ls)
        assert record.status == LeadSearchStatus.FAILED
        assert record.error_message == "ValueError: bad query"

    def test_last_crawl_failure_closes_search(self, queue, progress, make_lead_search) -> None:  # type: ignore[no-untyped-def]
        ls = make_lead_search(discovered_count=1)
        queue.enqueue(JobSpec(type=JobType.CRAWL, target_url="https://acme.co.uk", lead_search_id=ls))
        worker = Worker(queue, {JobType.CRAWL: RecordingHandler(RuntimeError("boom"))}, progress)

        worker.run_once()

        assert LeadSearchService(queue.store, queue).get(ls).status == LeadSearchStatus.DONE


class TestRunUntilIdle:
    def test_drains_everything(self, queue, progress) -> None:  # type: ignore[no-untyped-def]
        handler = RecordingHandler()
        for _ in range(7):
            queue.enqueue(JobSpec(type=JobType.CRAWL, target_url="https://acme.co.uk"))
        pool = WorkerPool(Worker(queue, {JobType.CRAWL: handler}, progress), WorkerConfig(concurrency=3))

        outcomes = pool.run_until_idle()

        assert len(outcomes) == 7
        assert sorted(handler.handled) == sorted(o.job_id for o in outcomes)
        assert len(set(handler.handled)) == 7

    def test_max_jobs(self, queue, progress) -> None:  # type: ignore[no-untyped-def]
        for _ in range(5):
            queue.enqueue(JobSpec(type=JobType.CRAWL, target_url="https://acme.co.uk"))
        pool = WorkerPool(Worker(queue, {JobType.CRAWL: RecordingHandler()}, progress), WorkerConfig(concurrency=1))

        assert len(pool.run_until_idle(max_jobs=2)) == 2
        assert queue.claim_next() is not None

    def test_follow_up_jobs_drained_in_parallel(self, queue, progress) -> None:  # type: ignore[no-untyped-def]
        rendezvous = RendezvousHandler(parties=2)
        queue.enqueue(JobSpec(type=JobType.CRAWL, target_url="https://acme.co.uk"))
        handlers = {JobType.CRAWL: FanOutHandler(queue, count=2), JobType.ENRICHMENT: rendezvous}
        pool = WorkerPool(Worker(queue, handlers, progress), WorkerConfig(concurrency=2))

        outcomes = pool.run_until_idle()

        # both ENRICHMENT jobs only pass the barrier when two threads run them at once
        assert [o.job_type for o in outcomes].count(JobType.ENRICHMENT) == 2
        assert all(o.ok for o in outcomes), [o.error for o in outcomes]
        assert len(rendezvous.handled) == 2

    def test_run_once_error_is_logged_and_drain_continues(self, queue, progress, caplog) -> None:  # type: ignore[no-untyped-def]
        handler = RecordingHandler()
        for _ in range(2):
            queue.enqueue(JobSpec(type=JobType.CRAWL, target_url="https://acme.co.uk"))
        worker = FlakyWorker(queue, {JobType.CRAWL: handler}, progress, failures=1)
        pool = WorkerPool(worker, WorkerConfig(concurrency=1))

        with caplog.at_level(logging.ERROR, logger="leadpipe.worker"):
            outcomes = pool.run_until_idle()

        assert len(outcomes) == 2
        assert len(handler.handled) == 2
        assert "Worker loop error" in caplog.text

    def test_persistent_errors_stop_drain(self, queue, progress) -> None:  # type: ignore[no-untyped-def]
        worker = FlakyWorker(queue, {}, progress, failures=100)
        pool = WorkerPool(worker, WorkerConfig(concurrency=1))

        assert pool.run_until_idle() == []
        assert worker.calls == MAX_DRAIN_ERRORS
