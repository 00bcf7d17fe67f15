from __future__ import annotations

from typing import Sequence


def score_company(emails: Sequence[str], phones: Sequence[str], text: str) -> int:
    """
    Rough 0-100 quality score from crawl output.

    +30 any email, +20 any phone, +20 more than 100 chars of text,
    +10 text mentions "about", +10 text mentions "contact".
    """
    score = 0
    if emails:
        score += 30
    if phones:
        score += 20

    body = text or ""
    if len(body) > 100:
        score += 20
    if "about" in body:
        score += 10
    if "contact" in body:
        score += 10
    return min(score, 100)
