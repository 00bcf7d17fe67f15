from __future__ import annotations

import logging

from sqlalchemy import update

from ..companies import load_company
from ..db import Store
from ..leadsearch.progress import ProgressTracker
from ..models import Job
from ..schema import Company, JobType, LeadSearch
from .classifier import BaseClassifier
from .contacts import enrich_contacts_for_company

logger = logging.getLogger(__name__)

SIZE_BUCKETS = ("MICRO", "SMALL", "SMB", "MIDMARKET", "ENTERPRISE")


class EnrichmentHandler:
    """ENRICHMENT job: classify a crawled company and tidy its contacts."""

    job_type = JobType.ENRICHMENT

    def __init__(self, store: Store, classifier: BaseClassifier, progress: ProgressTracker) -> None:
        self.store = store
        self.classifier = classifier
        self.progress = progress

    def handle(self, job: Job) -> None:
        if not job.company_id:
            logger.warning("ENRICHMENT job %s has no company_id", job.id)
            return

        with self.store.connect() as conn:
            company = load_company(conn, job.company_id)
        if company is None:
            logger.warning("ENRICHMENT job %s points at missing company %s", job.id, job.company_id)
            return

        logger.info("Starting enrichment for %s (classifier=%s)", company["domain"], self.classifier.name)
        result = self.classifier.classify(company)

        size_bucket = result.size_bucket if result.size_bucket in SIZE_BUCKETS else company["size_bucket"]

        # classifier output only overwrites when it produced something
        values = {
            "category": result.category or company["category"],
            "niche": result.niche or company["niche"],
            "tags": result.tags or company["tags"],
            "ai_confidence": result.confidence if result.confidence is not None else company["ai_confidence"],
            "industry": result.industry or company["industry"],
            "size_bucket": size_bucket,
            "hq_city": result.hq_city or company["hq_city"],
            "hq_country": result.hq_country or company["hq_country"],
            "business_type": result.business_type or company["business_type"],
            "keywords": result.keywords or company["keywords"],
            "ideal_customer_notes": result.ideal_customer_notes or company["ideal_customer_notes"],
        }

        with self.store.transaction() as conn:
            conn.execute(update(Company).where(Company.id == company["id"]).values(**values))
            enrich_contacts_for_company(conn, company["id"])
            if job.lead_search_id:
                conn.execute(
                    update(LeadSearch)
                    .where(LeadSearch.id == job.lead_search_id)
                    .values(enriched_count=LeadSearch.enriched_count + 1)
                )

        logger.info(
            "Enriched company %s category=%s industry=%s size=%s confidence=%s",
            company["domain"],
            values["category"],
            values["industry"],
            size_bucket,
            values["ai_confidence"],
        )

        self.progress.maybe_mark_done(job.lead_search_id)
