"""Stand-ins for the network-facing collaborators (fetcher, search, classifier)."""

from typing import Dict, List, Optional

from leadpipe.discovery.search import BaseSearchProvider, SearchHit
from leadpipe.enrichment.classifier import BaseClassifier, EnrichmentResult


class FakeFetcher:
    """url -> html; unknown urls behave like a failed fetch. Records every call."""

    def __init__(self, pages: Optional[Dict[str, str]] = None) -> None:
        self.pages = dict(pages or {})
        self.calls: List[str] = []

    def __call__(self, url: str) -> Optional[str]:
        self.calls.append(url)
        return self.pages.get(url)


class FakeSearchProvider(BaseSearchProvider):
    name = "fake"

    def __init__(self, hits: Optional[List[SearchHit]] = None) -> None:
        self.hits = list(hits or [])
        self.queries: List[str] = []

    def search(self, query: str, pages: int = 1) -> List[SearchHit]:
        self.queries.append(query)
        return list(self.hits)


class FakeClassifier(BaseClassifier):
    name = "fake"

    def __init__(self, result: Optional[EnrichmentResult] = None) -> None:
        self.result = result or EnrichmentResult()
        self.seen: List[str] = []

    def classify(self, company) -> EnrichmentResult:
        self.seen.append(company["domain"])
        return self.result


