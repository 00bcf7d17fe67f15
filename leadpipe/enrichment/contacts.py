from __future__ import annotations

import logging
import re
from typing import Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.engine import Connection

from ..schema import Contact

logger = logging.getLogger(__name__)

DECISION_MAKER_KEYWORDS = (
    "founder",
    "co-founder",
    "cofounder",
    "owner",
    "ceo",
    "chief executive",
    "president",
    "director",
    "managing director",
    "head of",
    "partner",
    "vp",
    "vice president",
    "c-level",
    "cto",
    "cfo",
    "cmo",
    "coo",
)

_DIGITS = re.compile(r"\d+")
_SEPARATORS = re.compile(r"[._\-]")


def _capitalize(s: str) -> str:
    return s[:1].upper() + s[1:].lower()


def guess_name_from_email(email: str) -> Tuple[Optional[str], Optional[str]]:
    """
    `jane.doe@x.com` -> ("Jane", "Doe"); `jane@x.com` -> ("Jane", None).
    Digits are dropped; `.`, `_` and `-` separate parts; middle parts are ignored.
    """
    local = (email or "").split("@", 1)[0]
    parts = _SEPARATORS.sub(" ", _DIGITS.sub("", local)).split()
    if not parts:
        return None, None
    if len(parts) == 1:
        return _capitalize(parts[0]), None
    return _capitalize(parts[0]), _capitalize(parts[-1])


def is_likely_decision_maker(role: Optional[str]) -> bool:
    if not role:
        return False
    low = role.lower()
    return any(kw in low for kw in DECISION_MAKER_KEYWORDS)


def enrich_contacts_for_company(conn: Connection, company_id: int) -> int:
    """Fill guessed names and the decision-maker flag for every contact of a company."""
    rows = conn.execute(
        select(Contact.id, Contact.email, Contact.first_name, Contact.last_name, Contact.role).where(
            Contact.company_id == company_id
        )
    ).all()

    for row in rows:
        if row.first_name:
            first, last = row.first_name, row.last_name
        else:
            first, last = guess_name_from_email(row.email)
        conn.execute(
            update(Contact)
            .where(Contact.id == row.id)
            .values(
                first_name=first or row.first_name,
                last_name=last or row.last_name,
                is_decision_maker=is_likely_decision_maker(row.role),
            )
        )
        logger.debug("Enriched contact %s: %s %s", row.email, first, last)

    logger.info("Enriched %s contacts for company_id=%s", len(rows), company_id)
    return len(rows)
