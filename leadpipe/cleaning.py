from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List

_VALID_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Shared inboxes: fine to store, but not a person worth prioritising.
ROLE_MAILBOX_PREFIXES = (
    "admin@",
    "office@",
    "info@",
    "support@",
    "contact@",
    "hello@",
    "enquiries@",
    "sales@",
    "team@",
    "mail@",
    "noreply@",
    "no-reply@",
)


@dataclass
class CleanedEmails:
    cleaned: List[str] = field(default_factory=list)
    high_quality: List[str] = field(default_factory=list)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(_VALID_EMAIL.match(email or ""))


def is_lead_quality_email(email: str) -> bool:
    """False for role mailboxes; the whole local part must match, so mycontact@ is still a lead."""
    return not email.lower().startswith(ROLE_MAILBOX_PREFIXES)


def process_extracted_emails(raw_emails: Iterable[str]) -> CleanedEmails:
    """Normalize, validate and dedupe (first-seen order); high_quality drops role mailboxes."""
    normalized = [normalize_email(e) for e in raw_emails]
    unique = list(dict.fromkeys(e for e in normalized if is_valid_email(e)))
    return CleanedEmails(cleaned=unique, high_quality=[e for e in unique if is_lead_quality_email(e)])
