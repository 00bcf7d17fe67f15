"""
LeadSearch lifecycle transitions.

    PENDING --start()--> RUNNING --maybe_mark_done()--> DONE
                                 --finish_empty()-----> DONE (error_message set)
    PENDING|RUNNING --fail()---------------------------> FAILED

Every transition is a conditional UPDATE on the current status, so it
happens at most once no matter how many workers race on it.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.engine import Connection

from ..db import Store
from ..jobs.queue import count_active_jobs
from ..schema import JobType, LeadSearch, LeadSearchStatus

logger = logging.getLogger(__name__)

NO_CANDIDATES = "no_candidates_found"
MAX_ERROR_CHARS = 2000

class ProgressTracker:
    def __init__(self, store: Store) -> None:
        self.store = store

    def maybe_mark_done(self, lead_search_id: Optional[int]) -> bool:
        """
        Mark a RUNNING search DONE once crawling and enrichment have caught up.

        Done when discovered_count > 0 and
          (crawled >= discovered or no CRAWL job PENDING/RUNNING) and
          (enriched >= crawled or no ENRICHMENT job PENDING/RUNNING).

        Returns True only for the call that performed the transition.
        """
        if lead_search_id is None:
            return False

        with self.store.transaction() as conn:
            ls = conn.execute(
                select(
                    LeadSearch.status,
                    LeadSearch.discovered_count,
                    LeadSearch.crawled_count,
                    LeadSearch.enriched_count,
                ).where(LeadSearch.id == lead_search_id)
            ).first()
            if ls is None or ls.status != LeadSearchStatus.RUNNING or ls.discovered_count <= 0:
                return False

            crawls_done = (
                ls.crawled_count >= ls.discovered_count
                or count_active_jobs(conn, lead_search_id, JobType.CRAWL) == 0
            )
            if not crawls_done:
                return False
            enrich_done = (
                ls.enriched_count >= ls.crawled_count
                or count_active_jobs(conn, lead_search_id, JobType.ENRICHMENT) == 0
            )
            if not enrich_done:
                return False

            done = self._transition(conn, lead_search_id, (LeadSearchStatus.RUNNING,), LeadSearchStatus.DONE)

        if done:
            logger.info("LeadSearch %s marked as DONE", lead_search_id)
        return done

    def start(self, lead_search_id: int) -> bool:
        """PENDING -> RUNNING."""
        with self.store.transaction() as conn:
            return self._transition(conn, lead_search_id, (LeadSearchStatus.PENDING,), LeadSearchStatus.RUNNING)

    def finish_empty(self, lead_search_id: int, reason: str = NO_CANDIDATES) -> bool:
        """Close a search that has nothing to crawl."""
        with self.store.transaction() as conn:
            done = self._transition(
                conn,
                lead_search_id,
                (LeadSearchStatus.PENDING, LeadSearchStatus.RUNNING),
                LeadSearchStatus.DONE,
                error=reason,
            )
        if done:
            logger.info("LeadSearch %s marked as DONE (%s)", lead_search_id, reason)
        return done

    def fail(self, lead_search_id: Optional[int], error: str) -> bool:
        if lead_search_id is None:
            return False
        with self.store.transaction() as conn:
            failed = self._transition(
                conn,
                lead_search_id,
                (LeadSearchStatus.PENDING, LeadSearchStatus.RUNNING),
                LeadSearchStatus.FAILED,
                error=(error or "")[:MAX_ERROR_CHARS],
            )
        if failed:
            logger.warning("LeadSearch %s marked as FAILED: %s", lead_search_id, error)
        return failed

    @staticmethod
    def _transition(conn: Connection, lead_search_id: int, from_statuses, to_status: str, error: Optional[str] = None) -> bool:
        values = {"status": to_status}
        if error is not None:
            values["error_message"] = error
        result = conn.execute(
            update(LeadSearch)
            .where(LeadSearch.id == lead_search_id, LeadSearch.status.in_(from_statuses))
            .values(**values)
        )
        return result.rowcount == 1
