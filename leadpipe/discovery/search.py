"""
Web search providers for discovery.

- SearchHit: one organic result (url, title, snippet)
- BaseSearchProvider: interface; search(query, pages) -> list of hits
- SerperSearchProvider: google.serper.dev over requests
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import requests

logger = logging.getLogger(__name__)

SERPER_URL = "https://google.serper.dev/search"
SERPER_TIMEOUT_S = 10
RESULTS_PER_PAGE = 10


@dataclass
class SearchHit:
    url: str
    title: Optional[str] = None
    snippet: Optional[str] = None


class BaseSearchProvider:
    name: str = "base"

    def search(self, query: str, pages: int = 1) -> List[SearchHit]:
        """
        Organic results for `query`, `pages` result pages deep.

        Implementations log and skip failing pages; they do not raise for
        transport errors.
        """
        raise NotImplementedError("BaseSearchProvider.search() must be implemented by subclasses")


class SerperSearchProvider(BaseSearchProvider):
    name = "serper"

    def __init__(self, api_key: Optional[str], session: Optional[requests.Session] = None) -> None:
        self.api_key = api_key
        self.session = session or requests.Session()
        if not api_key:
            logger.warning("SERPER_API_KEY is not set; discovery search will return nothing.")

    def search(self, query: str, pages: int = 1) -> List[SearchHit]:
        if not self.api_key:
            logger.error("Cannot run Serper search for %r: API key not configured", query)
            return []

        hits: List[SearchHit] = []
        for page in range(1, max(1, pages) + 1):
            try:
                resp = self.session.post(
                    SERPER_URL,
                    json={"q": query, "page": page, "num": RESULTS_PER_PAGE},
                    headers={"X-API-KEY": self.api_key, "Content-Type": "application/json"},
                    timeout=SERPER_TIMEOUT_S,
                )
                resp.raise_for_status()
                organic = (resp.json() or {}).get("organic") or []
            except (requests.RequestException, ValueError) as e:
                logger.error("Serper search error query=%r page=%s: %s", query, page, e)
                continue

            page_hits = [
                SearchHit(url=item.get("link"), title=item.get("title"), snippet=item.get("snippet"))
                for item in organic
                if str(item.get("link") or "").startswith("http")
            ]
            hits.extend(page_hits)
            logger.info("Serper search page %s/%s query=%r results=%s", page, pages, query, len(page_hits))

        logger.info("Serper search completed query=%r total=%s", query, len(hits))
        return hits
