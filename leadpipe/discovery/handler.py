from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select, update

from ..companies import get_or_create_company, link_company, load_company
from ..config import DiscoveryOptions
from ..db import Store
from ..jobs import JobQueue
from ..leadsearch.progress import ProgressTracker
from ..models import Job, JobSpec
from ..schema import JobType, LeadSearch
from .engine import discover_candidate_sites
from .search import BaseSearchProvider

logger = logging.getLogger(__name__)


class DiscoveryHandler:
    """
    DISCOVERY job: turn a LeadSearch query into Company rows and CRAWL jobs.

    discovered_count is bumped once, after every CRAWL job is enqueued, so a
    fast crawl can never see a partially discovered search as finished.
    """

    job_type = JobType.DISCOVERY

    def __init__(
        self,
        store: Store,
        queue: JobQueue,
        provider: BaseSearchProvider,
        progress: ProgressTracker,
        options: Optional[DiscoveryOptions] = None,
    ) -> None:
        self.store = store
        self.queue = queue
        self.provider = provider
        self.progress = progress
        self.options = options or DiscoveryOptions()

    def handle(self, job: Job) -> None:
        if not job.lead_search_id:
            logger.warning("DISCOVERY job %s has no lead_search_id", job.id)
            return

        with self.store.connect() as conn:
            ls = conn.execute(
                select(LeadSearch.id, LeadSearch.query, LeadSearch.max_leads).where(LeadSearch.id == job.lead_search_id)
            ).first()
        if ls is None:
            logger.warning("DISCOVERY job %s points at missing lead search %s", job.id, job.lead_search_id)
            return

        self.progress.start(ls.id)
        max_leads = ls.max_leads or 100
        logger.info("Starting discovery lead_search_id=%s query=%r max_leads=%s", ls.id, ls.query, max_leads)

        sites = discover_candidate_sites(
            ls.query,
            self.provider,
            pages_per_query=self.options.pages_per_query,
            max_results=max_leads * self.options.candidate_multiplier,
        )
        if not sites:
            logger.warning("Discovery found no candidates for lead_search_id=%s", ls.id)
            self.progress.finish_empty(ls.id)
            return

        created = 0
        linked = 0
        for site in sites:
            company_id, was_created = get_or_create_company(
                self.store,
                domain=site.domain,
                website_url=site.url,
                name=site.title,
                raw_content=site.snippet,
            )
            created += int(was_created)

            with self.store.transaction() as conn:
                company = load_company(conn, company_id)
                is_new_link = link_company(conn, ls.id, company_id)
            if not is_new_link:
                continue
            linked += 1

            self.queue.enqueue(
                JobSpec(
                    type=JobType.CRAWL,
                    target_url=(company or {}).get("website_url") or site.url,
                    company_id=company_id,
                    lead_search_id=ls.id,
                )
            )

        with self.store.transaction() as conn:
            discovered = conn.execute(
                update(LeadSearch)
                .where(LeadSearch.id == ls.id)
                .values(discovered_count=LeadSearch.discovered_count + linked)
                .returning(LeadSearch.discovered_count)
            ).scalar_one()

        logger.info(
            "Discovery completed lead_search_id=%s sites=%s companies_created=%s linked=%s",
            ls.id,
            len(sites),
            created,
            linked,
        )
        if discovered == 0:
            # all hits were already linked and none was ever counted, so no CRAWL will close it
            logger.warning("Discovery linked no new companies for lead_search_id=%s", ls.id)
            self.progress.finish_empty(ls.id)
