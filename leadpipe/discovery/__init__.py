"""
Discovery: lead search query -> candidate business websites.

- queries.py: query variants
- search.py: web search providers
- engine.py: variants x provider -> deduped business domains
- handler.py: the DISCOVERY job handler
"""

from .engine import DiscoveredSite, discover_candidate_sites
from .queries import build_discovery_queries
from .search import BaseSearchProvider, SearchHit, SerperSearchProvider

__all__ = [
    "BaseSearchProvider",
    "DiscoveredSite",
    "SearchHit",
    "SerperSearchProvider",
    "build_discovery_queries",
    "discover_candidate_sites",
]
