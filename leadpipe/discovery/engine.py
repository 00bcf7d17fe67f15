from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..domains import is_likely_business_domain, normalize_domain_from_url
from .queries import build_discovery_queries
from .search import BaseSearchProvider

logger = logging.getLogger(__name__)


@dataclass
class DiscoveredSite:
    url: str
    domain: str
    title: Optional[str] = None
    snippet: Optional[str] = None


def discover_candidate_sites(
    base_query: str,
    provider: BaseSearchProvider,
    pages_per_query: int = 1,
    max_results: int = 100,
) -> List[DiscoveredSite]:
    """
    Run every query variant through `provider`, keep likely business domains,
    dedupe by domain (first hit wins) and cap at `max_results`.
    """
    queries = build_discovery_queries(base_query)
    logger.info(
        "Running discovery query=%r variants=%s pages_per_query=%s max_results=%s",
        base_query,
        len(queries),
        pages_per_query,
        max_results,
    )

    by_domain: Dict[str, DiscoveredSite] = {}
    raw = 0
    for q in queries:
        for hit in provider.search(q, pages_per_query):
            domain = normalize_domain_from_url(hit.url)
            if not domain or not is_likely_business_domain(domain):
                continue
            raw += 1
            by_domain.setdefault(domain, DiscoveredSite(url=hit.url, domain=domain, title=hit.title, snippet=hit.snippet))

    sites = list(by_domain.values())
    logger.info("Discovery collected %s business hits, %s unique domains", raw, len(sites))

    if len(sites) > max_results:
        logger.info("Limiting discovery results from %s to %s", len(sites), max_results)
        sites = sites[:max_results]
    return sites
