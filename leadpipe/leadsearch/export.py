"""CSV rendering of a lead search's leads."""

from __future__ import annotations

import csv
import io
from typing import Iterable, Optional

from ..models import LeadRecord

HEADER = [
    "email",
    "first_name",
    "last_name",
    "company",
    "website",
    "city",
    "country",
    "niche",
    "industry",
    "size_bucket",
    "role",
    "decision_maker",
]


def _cell(value: Optional[str]) -> str:
    return "" if value is None else str(value)


def leads_to_csv(leads: Iterable[LeadRecord]) -> str:
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")
    w.writerow(HEADER)
    for lead in leads:
        w.writerow([
            _cell(lead.email),
            _cell(lead.first_name),
            _cell(lead.last_name),
            _cell(lead.company_name),
            _cell(lead.website_url),
            _cell(lead.city),
            _cell(lead.country),
            _cell(lead.niche),
            _cell(lead.industry),
            _cell(lead.size_bucket),
            _cell(lead.role),
            "yes" if lead.is_decision_maker else "no",
        ])
    return buf.getvalue()


def export_lead_search_csv(service, lead_search_id: int, **filters) -> str:
    """CSV for one search. Raises NotFoundError when the search does not exist."""
    service.get(lead_search_id)
    return leads_to_csv(service.get_leads(lead_search_id, **filters))
