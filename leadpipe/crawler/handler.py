from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import insert, select, update

from ..billing import CreditLedger
from ..cleaning import process_extracted_emails
from ..companies import load_company
from ..config import CrawlOptions
from ..db import Store
from ..domains import is_likely_business_domain, normalize_domain_from_url
from ..jobs import JobQueue
from ..leadsearch.progress import ProgressTracker
from ..models import CompanyIdentity, DeliveryContact, Job, JobSpec
from ..schema import Company, Contact, JobType, LeadSearch, utcnow
from ..scoring import score_company
from .domain_crawler import CrawlResult, crawl_domain
from .fetch import Fetcher

logger = logging.getLogger(__name__)

MAX_RAW_CONTENT_CHARS = 15000
CONTACT_SOURCE = "site_crawl"

_SOCIAL_COLUMNS = (
    ("linkedin", "linkedin_url"),
    ("facebook", "facebook_url"),
    ("twitter", "twitter_url"),
    ("instagram", "instagram_url"),
)


class SiteCrawlHandler:
    """
    CRAWL job: crawl one company website, store what it yields, and deliver
    the contacts to the lead search owner (charging net-new leads).

    Order per job:
      crawl -> clean/score -> update company -> upsert contacts
      -> ledger.process_delivery -> enqueue ENRICHMENT -> counters -> progress
    ENRICHMENT is committed before crawled_count moves, so a progress check on
    another worker cannot see crawled == discovered while this company's
    enrichment is still missing from the queue.
    """

    job_type = JobType.CRAWL

    def __init__(
        self,
        store: Store,
        queue: JobQueue,
        ledger: CreditLedger,
        progress: ProgressTracker,
        options: Optional[CrawlOptions] = None,
        fetch: Optional[Fetcher] = None,
    ) -> None:
        self.store = store
        self.queue = queue
        self.ledger = ledger
        self.progress = progress
        self.options = options or CrawlOptions()
        self.fetch = fetch

    def handle(self, job: Job) -> None:
        if not job.company_id or not job.target_url:
            logger.warning("CRAWL job %s missing company_id or target_url", job.id)
            return

        with self.store.connect() as conn:
            company = load_company(conn, job.company_id)
        if company is None:
            logger.warning("CRAWL job %s points at missing company %s", job.id, job.company_id)
            return

        base_url = job.target_url.strip().rstrip("/")
        domain = normalize_domain_from_url(base_url)
        if not domain or not is_likely_business_domain(domain):
            logger.info("Skipping CRAWL for non-business domain %s company_id=%s", domain, company["id"])
            self._bump_counters(job.lead_search_id, crawled=1, contacts=0)
            self.progress.maybe_mark_done(job.lead_search_id)
            return

        logger.info("Starting CRAWL company_id=%s domain=%s url=%s", company["id"], company["domain"], base_url)
        result = crawl_domain(base_url, self.options, fetch=self.fetch)

        emails = process_extracted_emails(result.emails)
        score = score_company(emails.cleaned, result.phones, result.text_content)
        self._update_company(company, result, score)

        contacts = self._upsert_contacts(company, emails.cleaned)

        total_found = 0
        if job.lead_search_id and contacts:
            user_id = self._owner(job.lead_search_id)
            if user_id is not None:
                summary = self.ledger.process_delivery(user_id, job.lead_search_id, contacts)
                total_found = summary.total_found

        if self.queue.has_active_for_company(company["id"], JobType.ENRICHMENT):
            logger.info("ENRICHMENT already queued for company_id=%s", company["id"])
        else:
            self.queue.enqueue(
                JobSpec(type=JobType.ENRICHMENT, company_id=company["id"], lead_search_id=job.lead_search_id)
            )

        # crawled_count only moves once the follow-up is visible to other workers
        self._bump_counters(job.lead_search_id, crawled=1, contacts=total_found)
        self.progress.maybe_mark_done(job.lead_search_id)

        logger.info(
            "CRAWL completed domain=%s pages=%s emails=%s (%s high-quality) phones=%s score=%s",
            company["domain"],
            result.pages_visited,
            len(emails.cleaned),
            len(emails.high_quality),
            len(result.phones),
            score,
        )

    def _update_company(self, company, result: CrawlResult, score: int) -> None:
        values = {
            "name": (result.company_name or company["name"])[:300],
            "phone": result.phones[0] if result.phones else company["phone"],
            "last_crawled_at": utcnow(),
            "ai_confidence": float(score),
            "raw_content": result.text_content[:MAX_RAW_CONTENT_CHARS],
        }
        # socials / address only fill empty columns
        for platform, column in _SOCIAL_COLUMNS:
            found = getattr(result.social_links, platform)
            if found and not company[column]:
                values[column] = found
        if result.address_guess and not company["address_raw"]:
            values["address_raw"] = result.address_guess

        with self.store.transaction() as conn:
            conn.execute(update(Company).where(Company.id == company["id"]).values(**values))

    def _upsert_contacts(self, company, emails: List[str]) -> List[DeliveryContact]:
        identity = CompanyIdentity.from_row(company)
        out: List[DeliveryContact] = []
        with self.store.transaction() as conn:
            for email in emails:
                contact_id = conn.execute(
                    select(Contact.id).where(Contact.email == email, Contact.company_id == company["id"])
                ).scalar_one_or_none()
                if contact_id is None:
                    now = utcnow()
                    contact_id = conn.execute(
                        insert(Contact)
                        .values(email=email, company_id=company["id"], source=CONTACT_SOURCE, created_at=now, updated_at=now)
                        .returning(Contact.id)
                    ).scalar_one()
                else:
                    conn.execute(update(Contact).where(Contact.id == contact_id).values(source=CONTACT_SOURCE))
                out.append(DeliveryContact(email=email, company=identity, id=contact_id))
        return out

    def _owner(self, lead_search_id: int) -> Optional[str]:
        with self.store.connect() as conn:
            return conn.execute(
                select(LeadSearch.user_id).where(LeadSearch.id == lead_search_id)
            ).scalar_one_or_none()

    def _bump_counters(self, lead_search_id: Optional[int], crawled: int, contacts: int) -> None:
        if not lead_search_id:
            return
        with self.store.transaction() as conn:
            conn.execute(
                update(LeadSearch)
                .where(LeadSearch.id == lead_search_id)
                .values(
                    crawled_count=LeadSearch.crawled_count + crawled,
                    contacts_found_count=LeadSearch.contacts_found_count + contacts,
                )
            )
