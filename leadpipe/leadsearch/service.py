from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import func, insert, select

from ..db import Store
from ..errors import InsufficientCreditsError, NotFoundError, WalletNotFoundError
from ..jobs import JobQueue
from ..models import JobSpec, LeadRecord, LeadSearchRecord
from ..schema import Company, Contact, CreditWallet, JobType, LeadSearch, LeadSearchCompany, LeadSearchStatus, utcnow

logger = logging.getLogger(__name__)

DEFAULT_MAX_LEADS = 100

_LEAD_SEARCH_COLUMNS = tuple(LeadSearch.__table__.c)


class LeadSearchService:
    """Entry point for starting and reading lead searches."""

    def __init__(self, store: Store, queue: JobQueue) -> None:
        self.store = store
        self.queue = queue

    def create_lead_search(self, user_id: str, query: str, max_leads: int = DEFAULT_MAX_LEADS) -> LeadSearchRecord:
        """
        Create a PENDING lead search and enqueue its DISCOVERY job.

        The search row and its DISCOVERY job commit together: a search never
        exists without the job that drives it.

        Credits are charged per delivered lead later on; here we only refuse
        to start when the wallet is missing or empty.
        """
        q = (query or "").strip()
        if not q:
            raise ValueError("query must not be empty")
        max_leads = int(max_leads or DEFAULT_MAX_LEADS)
        if max_leads <= 0:
            raise ValueError("max_leads must be positive")

        with self.store.transaction() as conn:
            balance = conn.execute(
                select(CreditWallet.balance).where(CreditWallet.user_id == user_id)
            ).scalar_one_or_none()
            if balance is None:
                raise WalletNotFoundError(user_id)
            if balance <= 0:
                raise InsufficientCreditsError(1, balance)

            row = conn.execute(
                insert(LeadSearch)
                .values(
                    user_id=user_id,
                    query=q,
                    max_leads=max_leads,
                    status=LeadSearchStatus.PENDING,
                    created_at=utcnow(),
                )
                .returning(*_LEAD_SEARCH_COLUMNS)
            ).one()
            record = LeadSearchRecord.from_row(row._mapping)
            job = self.queue.enqueue_on(conn, JobSpec(type=JobType.DISCOVERY, lead_search_id=record.id))

        logger.info("Created LeadSearch %s for user=%s query=%r", record.id, user_id, q)
        logger.info("Enqueued DISCOVERY job %s for LeadSearch %s", job.id, record.id)
        return record

    def get(self, lead_search_id: int) -> LeadSearchRecord:
        with self.store.connect() as conn:
            row = conn.execute(select(*_LEAD_SEARCH_COLUMNS).where(LeadSearch.id == lead_search_id)).first()
        if row is None:
            raise NotFoundError("lead search", lead_search_id)
        return LeadSearchRecord.from_row(row._mapping)

    def get_leads(
        self,
        lead_search_id: int,
        *,
        limit: Optional[int] = None,
        min_score: Optional[float] = None,
        industry: Optional[str] = None,
        size_bucket: Optional[str] = None,
        country: Optional[str] = None,
        decision_maker_only: bool = False,
    ) -> List[LeadRecord]:
        """
        Contacts of the companies linked to a search, flattened into leads.

        Filters combine with AND. industry and country compare case-insensitively
        (country against the enriched HQ country). min_score drops companies
        without an ai_confidence. At most `limit` leads come back, defaulting to
        the search's max_leads. A missing search yields no leads.
        """
        with self.store.connect() as conn:
            max_leads = conn.execute(
                select(LeadSearch.max_leads).where(LeadSearch.id == lead_search_id)
            ).scalar_one_or_none()
            if max_leads is None:
                return []

            stmt = (
                select(
                    Contact.email,
                    Contact.first_name,
                    Contact.last_name,
                    Contact.role,
                    Contact.is_decision_maker,
                    Company.name.label("company_name"),
                    Company.website_url,
                    Company.hq_city,
                    Company.hq_country,
                    Company.niche,
                    Company.industry,
                    Company.size_bucket,
                    Company.ai_confidence,
                )
                .select_from(LeadSearchCompany)
                .join(Company, Company.id == LeadSearchCompany.company_id)
                .join(Contact, Contact.company_id == Company.id)
                .where(LeadSearchCompany.lead_search_id == lead_search_id)
            )
            if min_score is not None:
                stmt = stmt.where(Company.ai_confidence >= min_score)
            if industry:
                stmt = stmt.where(func.lower(Company.industry) == industry.strip().lower())
            if size_bucket:
                stmt = stmt.where(Company.size_bucket == size_bucket.strip().upper())
            if country:
                stmt = stmt.where(func.lower(Company.hq_country) == country.strip().lower())
            if decision_maker_only:
                stmt = stmt.where(Contact.is_decision_maker.is_(True))

            stmt = stmt.order_by(LeadSearchCompany.id.asc(), Contact.id.asc()).limit(limit or max_leads)
            rows = conn.execute(stmt).all()

        return [LeadRecord.from_row(r._mapping) for r in rows]
