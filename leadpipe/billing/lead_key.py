from __future__ import annotations

import re
from typing import Optional

from ..domains import normalize_domain
from ..models import DeliveryContact

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_SPACES = re.compile(r"\s+")


def _slug(value: Optional[str]) -> str:
    s = (value or "").lower().strip()
    s = _NON_ALNUM.sub("", s)
    return _SPACES.sub("_", s.strip())


def generate_lead_key(contact: DeliveryContact) -> str:
    """
    Generate a stable identity key for a lead (used for dedupe AND billing).

    Priority order, first match wins:
    1. company domain (explicit, else parsed from website URL) -> domain:<domain>
    2. map place id                                            -> place:<id>
    3. company name + city + country                           -> company:<name>_<city>_<country>
    4. email domain                                            -> email:<domain> | email:unknown

    Different people at the same company share a key, so a company is billed
    once per user no matter how many inboxes we find on its site.
    """
    company = contact.company

    if company.domain and company.domain.strip():
        domain = normalize_domain(company.domain)
        if domain:
            return f"domain:{domain}"

    if company.website_url and company.website_url.strip():
        domain = normalize_domain(company.website_url)
        if domain:
            return f"domain:{domain}"

    place_id = (company.google_maps_place_id or "").strip()
    if place_id:
        return f"place:{place_id}"

    name = _slug(company.name)
    if name:
        parts = [name] + [p for p in (_slug(company.city), _slug(company.country)) if p]
        return "company:" + "_".join(parts)

    email = (contact.email or "").strip().lower()
    email_domain = email.split("@", 1)[1].strip() if "@" in email else ""
    return f"email:{email_domain or 'unknown'}"
