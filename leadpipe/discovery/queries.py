from __future__ import annotations

import re
from typing import List

_UK_INDICATOR = re.compile(r"\b(uk|united kingdom|britain|england|scotland|wales)\b", re.I)
_LOCATION_PREPOSITION = re.compile(r"\b(in|near|around)\b", re.I)


def build_discovery_queries(base_query: str) -> List[str]:
    """
    Search variants for one lead search query, original first.

    "dentists in Leeds" ->
        dentists in Leeds
        dentists in Leeds company website
        dentists in Leeds business
        dentists in Leeds official site
        dentists in Leeds contact
        dentists in Leeds UK
    """
    q = (base_query or "").strip()
    if not q:
        return []

    variants = [
        q,
        f"{q} company website",
        f"{q} business",
        f"{q} official site",
        f"{q} contact",
    ]
    if not _UK_INDICATOR.search(q) and _LOCATION_PREPOSITION.search(q):
        variants.append(f"{q} UK")

    return list(dict.fromkeys(variants))
