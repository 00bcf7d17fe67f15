"""
leadpipe.jobs.queue

Persistent job queue on the crawl_jobs table.

Claiming is one conditional UPDATE:

    UPDATE crawl_jobs SET status='RUNNING', attempts=attempts+1, started_at=now
     WHERE id = (SELECT id FROM crawl_jobs
                  WHERE status='PENDING' AND (scheduled_at IS NULL OR scheduled_at <= now)
                  ORDER BY priority DESC, created_at ASC, id ASC
                  LIMIT 1 [FOR UPDATE SKIP LOCKED])
       AND status='PENDING'
    RETURNING *

so two workers never both own a job. A worker that loses the race gets zero
rows and simply tries again (bounded). Status only moves forward:
PENDING -> RUNNING -> DONE | FAILED. Failed jobs stay failed.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func, insert, or_, select, update
from sqlalchemy.engine import Connection

from ..db import Store
from ..errors import JobSpecError, NotFoundError
from ..models import Job, JobSpec
from ..schema import CrawlJob, JobStatus, JobType, utcnow

logger = logging.getLogger(__name__)

MAX_ERROR_CHARS = 2000
CLAIM_ATTEMPTS = 5

_JOB_COLUMNS = tuple(CrawlJob.__table__.c)


def count_active_jobs(conn: Connection, lead_search_id: int, job_type: str) -> int:
    """PENDING + RUNNING jobs of `job_type` for a lead search, on an open connection."""
    return conn.execute(
        select(func.count())
        .select_from(CrawlJob)
        .where(
            CrawlJob.lead_search_id == lead_search_id,
            CrawlJob.type == job_type,
            CrawlJob.status.in_(JobStatus.ACTIVE),
        )
    ).scalar_one()


class JobQueue:
    def __init__(self, store: Store, claim_attempts: int = CLAIM_ATTEMPTS) -> None:
        self.store = store
        self.claim_attempts = max(1, claim_attempts)

    def enqueue(self, spec: JobSpec) -> Job:
        with self.store.transaction() as conn:
            return self.enqueue_on(conn, spec)

    def enqueue_on(self, conn: Connection, spec: JobSpec) -> Job:
        """Insert a PENDING job inside the caller's transaction."""
        if spec.type not in JobType.ALL:
            raise JobSpecError(f"unknown job type: {spec.type!r}")
        row = conn.execute(
            insert(CrawlJob)
            .values(
                type=spec.type,
                status=JobStatus.PENDING,
                target_url=spec.target_url,
                company_id=spec.company_id,
                lead_search_id=spec.lead_search_id,
                priority=int(spec.priority or 0),
                attempts=0,
                scheduled_at=spec.scheduled_at,
                created_at=utcnow(),
            )
            .returning(*_JOB_COLUMNS)
        ).one()
        job = Job.from_row(row._mapping)
        logger.debug("Enqueued job id=%s type=%s priority=%s", job.id, job.type, job.priority)
        return job

    def claim_next(self) -> Optional[Job]:
        """Atomically take the best eligible PENDING job, or None when there is none."""
        for _ in range(self.claim_attempts):
            now = utcnow()
            eligible = (
                CrawlJob.status == JobStatus.PENDING,
                or_(CrawlJob.scheduled_at.is_(None), CrawlJob.scheduled_at <= now),
            )
            next_id = (
                select(CrawlJob.id)
                .where(*eligible)
                .order_by(CrawlJob.priority.desc(), CrawlJob.created_at.asc(), CrawlJob.id.asc())
                .limit(1)
            )
            if self.store.dialect == "postgresql":
                next_id = next_id.with_for_update(skip_locked=True)

            with self.store.transaction() as conn:
                row = conn.execute(
                    update(CrawlJob)
                    .where(CrawlJob.id == next_id.scalar_subquery(), CrawlJob.status == JobStatus.PENDING)
                    .values(status=JobStatus.RUNNING, attempts=CrawlJob.attempts + 1, started_at=now)
                    .returning(*_JOB_COLUMNS)
                ).first()
                if row is None:
                    # lost the race, or nothing to do
                    remaining = conn.execute(select(CrawlJob.id).where(*eligible).limit(1)).first()
                    if remaining is None:
                        return None
                    continue

            job = Job.from_row(row._mapping)
            logger.debug("Claimed job id=%s type=%s attempts=%s", job.id, job.type, job.attempts)
            return job
        return None

    def mark_done(self, job_id: int) -> bool:
        return self._finish(job_id, JobStatus.DONE, None)

    def mark_failed(self, job_id: int, error: str) -> bool:
        msg = (error or "")[:MAX_ERROR_CHARS]
        return self._finish(job_id, JobStatus.FAILED, msg)

    def _finish(self, job_id: int, status: str, error: Optional[str]) -> bool:
        with self.store.transaction() as conn:
            result = conn.execute(
                update(CrawlJob)
                .where(CrawlJob.id == job_id, CrawlJob.status == JobStatus.RUNNING)
                .values(status=status, last_error=error, finished_at=utcnow())
            )
            if result.rowcount == 1:
                return True
            current = conn.execute(select(CrawlJob.status).where(CrawlJob.id == job_id)).scalar_one_or_none()

        if current is None:
            raise NotFoundError("job", job_id)
        logger.warning("Ignoring %s for job id=%s in status %s", status, job_id, current)
        return False

    def get(self, job_id: int) -> Job:
        with self.store.connect() as conn:
            row = conn.execute(select(*_JOB_COLUMNS).where(CrawlJob.id == job_id)).first()
        if row is None:
            raise NotFoundError("job", job_id)
        return Job.from_row(row._mapping)

    def count_active(self, lead_search_id: int, job_type: str) -> int:
        """PENDING + RUNNING jobs of `job_type` for a lead search."""
        with self.store.connect() as conn:
            return count_active_jobs(conn, lead_search_id, job_type)

    def has_active_for_company(self, company_id: int, job_type: str) -> bool:
        with self.store.connect() as conn:
            row = conn.execute(
                select(CrawlJob.id)
                .where(
                    CrawlJob.company_id == company_id,
                    CrawlJob.type == job_type,
                    CrawlJob.status.in_(JobStatus.ACTIVE),
                )
                .limit(1)
            ).first()
        return row is not None
