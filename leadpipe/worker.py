"""
leadpipe.worker

Job execution loop.

- Worker.run_once(): claim one job, run its handler, ack it, return a JobOutcome
- WorkerPool: N threads of run_once() with a poll sleep when the queue is empty

Handler exceptions never escape run_once(): they become mark_failed() with
"ExceptionType: message". Infrastructure errors (database down while
claiming) are logged by the pool and retried after the poll interval.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import List, Mapping, Optional

from .alerts import DiscordAlerter
from .config import WorkerConfig
from .jobs import JobQueue
from .leadsearch.progress import ProgressTracker
from .models import Job
from .schema import JobType

logger = logging.getLogger(__name__)

IDLE_RECHECK_S = 0.05
MAX_DRAIN_ERRORS = 3


@dataclass
class JobOutcome:
    job_id: int
    job_type: str
    ok: bool
    error: Optional[str] = None
    lead_search_id: Optional[int] = None


class Worker:
    def __init__(
        self,
        queue: JobQueue,
        handlers: Mapping[str, object],
        progress: ProgressTracker,
        alerter: Optional[DiscordAlerter] = None,
    ) -> None:
        self.queue = queue
        self.handlers = dict(handlers)
        self.progress = progress
        self.alerter = alerter

    def run_once(self) -> Optional[JobOutcome]:
        """Process at most one job. Returns None when nothing was claimable."""
        job = self.queue.claim_next()
        if job is None:
            return None

        logger.info("Handling job id=%s type=%s target=%s", job.id, job.type, job.target_url)
        try:
            handler = self.handlers.get(job.type)
            if handler is None:
                raise LookupError(f"no handler registered for job type {job.type}")
            handler.handle(job)
        except Exception as e:
            error = f"{type(e).__name__}: {e}"
            logger.exception("Job id=%s type=%s failed", job.id, job.type)
            return self._fail(job, error)

        self.queue.mark_done(job.id)
        self.progress.maybe_mark_done(job.lead_search_id)
        return JobOutcome(job.id, job.type, True, lead_search_id=job.lead_search_id)

    def _fail(self, job: Job, error: str) -> JobOutcome:
        self.queue.mark_failed(job.id, error)
        if job.type == JobType.DISCOVERY:
            # nothing downstream will ever run for this search
            self.progress.fail(job.lead_search_id, error)
        else:
            self.progress.maybe_mark_done(job.lead_search_id)
        if self.alerter is not None:
            self.alerter.job_failed(job.id, job.type, job.lead_search_id, error)
        return JobOutcome(job.id, job.type, False, error=error, lead_search_id=job.lead_search_id)


class WorkerPool:
    def __init__(self, worker: Worker, config: Optional[WorkerConfig] = None) -> None:
        self.worker = worker
        self.config = config or WorkerConfig()
        self._stop = threading.Event()

    def stop(self) -> None:
        self._stop.set()

    def _loop(self, idx: int) -> None:
        logger.info("Job loop #%s started", idx + 1)
        while not self._stop.is_set():
            try:
                outcome = self.worker.run_once()
            except Exception:
                logger.exception("Worker loop error in job loop #%s", idx + 1)
                self._stop.wait(self.config.poll_interval_s)
                continue
            if outcome is None:
                self._stop.wait(self.config.poll_interval_s)
        logger.info("Job loop #%s stopped", idx + 1)

    def run_forever(self) -> None:
        """Block until stop() is called (from another thread or a signal handler)."""
        self._stop.clear()
        threads = [
            threading.Thread(target=self._loop, args=(i,), name=f"leadpipe-worker-{i + 1}", daemon=True)
            for i in range(self.config.concurrency)
        ]
        logger.info("Worker pool starting concurrency=%s poll=%.1fs", self.config.concurrency, self.config.poll_interval_s)
        for t in threads:
            t.start()
        for t in threads:
            t.join()

    def run_until_idle(self, max_jobs: Optional[int] = None) -> List[JobOutcome]:
        """
        Drain the queue and return every outcome.

        A thread that finds the queue empty keeps rechecking while another
        thread is mid-job, because that job may enqueue follow-ups. The pool
        is idle once a claim comes back empty with no job in flight and no job
        finished since that claim began. `max_jobs` caps the total across threads.

        An error escaping run_once() (database down while claiming) is logged
        and retried; a thread gives up after MAX_DRAIN_ERRORS in a row.
        """
        outcomes: List[JobOutcome] = []
        lock = threading.Lock()
        started = [0]
        in_flight = [0]
        finished = [0]

        def _drain(idx: int) -> None:
            errors = 0
            while not self._stop.is_set():
                with lock:
                    if max_jobs is not None and started[0] >= max_jobs:
                        return
                    started[0] += 1
                    in_flight[0] += 1
                    seen = finished[0]
                try:
                    outcome = self.worker.run_once()
                except Exception:
                    logger.exception("Worker loop error in drain thread #%s", idx + 1)
                    with lock:
                        in_flight[0] -= 1
                        started[0] -= 1
                    errors += 1
                    if errors >= MAX_DRAIN_ERRORS:
                        logger.error("Drain thread #%s giving up after %s consecutive errors", idx + 1, errors)
                        return
                    self._stop.wait(IDLE_RECHECK_S)
                    continue
                errors = 0

                with lock:
                    in_flight[0] -= 1
                    if outcome is not None:
                        outcomes.append(outcome)
                        finished[0] += 1
                        continue
                    started[0] -= 1
                    if in_flight[0] == 0 and finished[0] == seen:
                        return
                self._stop.wait(IDLE_RECHECK_S)

        if self.config.concurrency == 1:
            _drain(0)
            return outcomes

        threads = [
            threading.Thread(target=_drain, args=(i,), name=f"leadpipe-drain-{i + 1}")
            for i in range(self.config.concurrency)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        return outcomes
