"""Company rows: lookup, get-or-create by domain, linking to lead searches."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Tuple

from sqlalchemy import insert, select
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from .db import Store
from .schema import Company, LeadSearchCompany, utcnow

logger = logging.getLogger(__name__)

_COMPANY_COLUMNS = tuple(Company.__table__.c)


def load_company(conn: Connection, company_id: int) -> Optional[Mapping[str, Any]]:
    row = conn.execute(select(*_COMPANY_COLUMNS).where(Company.id == company_id)).first()
    return row._mapping if row is not None else None


def _find_by_domain(conn: Connection, domain: str) -> Optional[int]:
    return conn.execute(select(Company.id).where(Company.domain == domain)).scalar_one_or_none()


def get_or_create_company(
    store: Store,
    domain: str,
    website_url: str,
    name: Optional[str] = None,
    source: str = "discovery_serp",
    raw_content: Optional[str] = None,
) -> Tuple[int, bool]:
    """Returns (company_id, created). Domain is the identity; an existing row is reused untouched."""
    with store.transaction() as conn:
        existing = _find_by_domain(conn, domain)
        if existing is not None:
            return existing, False
    try:
        with store.transaction() as conn:
            company_id = conn.execute(
                insert(Company)
                .values(
                    domain=domain,
                    name=(name or domain)[:300],
                    website_url=website_url,
                    source=source,
                    raw_content=raw_content,
                    created_at=utcnow(),
                )
                .returning(Company.id)
            ).scalar_one()
        return company_id, True
    except IntegrityError:
        # another discovery run created it first
        with store.transaction() as conn:
            existing = _find_by_domain(conn, domain)
        if existing is None:
            raise
        return existing, False


def link_company(conn: Connection, lead_search_id: int, company_id: int) -> bool:
    """Attach a company to a lead search; False if it was already attached."""
    already = conn.execute(
        select(LeadSearchCompany.id).where(
            LeadSearchCompany.lead_search_id == lead_search_id,
            LeadSearchCompany.company_id == company_id,
        )
    ).first()
    if already is not None:
        return False
    conn.execute(insert(LeadSearchCompany).values(lead_search_id=lead_search_id, company_id=company_id))
    return True
