"""
Configuration for leadpipe.

Every knob is env-driven (load a .env first via python-dotenv at entrypoints)
and lands in a typed dataclass so each operation receives an explicit struct
instead of loose dicts.

Env vars:
- DATABASE_URL (required)
- WORKER_CONCURRENCY / WORKER_POLL_INTERVAL_S
- LEADPIPE_CRAWL_MAX_PAGES / LEADPIPE_CRAWL_MAX_DEPTH
- LEADPIPE_FETCH_TIMEOUT_S / LEADPIPE_FETCH_USER_AGENT
- LEADPIPE_DISCOVERY_PAGES_PER_QUERY / LEADPIPE_DISCOVERY_CANDIDATE_MULTIPLIER
- LEADPIPE_OPENAI_MODEL / LEADPIPE_ENRICH_MIN_CONTENT_CHARS
- SERPER_API_KEY, OPENAI_API_KEY, LEADPIPE_ALERTS_WEBHOOK_URL (optional)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional


# -----------------------------
# Env helpers
# -----------------------------
def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


# -----------------------------
# Per-operation structs
# -----------------------------
@dataclass
class WorkerConfig:
    """
    concurrency:     number of independent claim/run/ack loops.
    poll_interval_s: sleep after an empty claim.
    """

    concurrency: int = 1
    poll_interval_s: float = 2.0

    @classmethod
    def from_env(cls) -> "WorkerConfig":
        return cls(
            concurrency=max(1, _env_int("WORKER_CONCURRENCY", 1)),
            poll_interval_s=max(0.0, _env_float("WORKER_POLL_INTERVAL_S", 2.0)),
        )


@dataclass
class CrawlOptions:
    """
    max_pages: hard cap on visited URLs per domain (failed fetches count).
    max_depth: deepest FIFO level followed from the root (root = 0).
    """

    max_pages: int = 6
    max_depth: int = 2

    @classmethod
    def from_env(cls) -> "CrawlOptions":
        return cls(
            max_pages=max(1, _env_int("LEADPIPE_CRAWL_MAX_PAGES", 6)),
            max_depth=max(0, _env_int("LEADPIPE_CRAWL_MAX_DEPTH", 2)),
        )


DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; LeadPipeBot/1.0)"


@dataclass
class FetchOptions:
    """
    timeout_s:  per-request timeout; failed fetches are never retried.
    user_agent: sent on every page request.
    """

    timeout_s: float = 8.0
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_env(cls) -> "FetchOptions":
        return cls(
            timeout_s=_env_float("LEADPIPE_FETCH_TIMEOUT_S", 8.0),
            user_agent=_env_str("LEADPIPE_FETCH_USER_AGENT", DEFAULT_USER_AGENT) or DEFAULT_USER_AGENT,
        )


@dataclass
class DiscoveryOptions:
    """
    pages_per_query:      search result pages fetched per query variant.
    candidate_multiplier: max candidate sites = LeadSearch.max_leads * this.
    """

    pages_per_query: int = 2
    candidate_multiplier: int = 3

    @classmethod
    def from_env(cls) -> "DiscoveryOptions":
        return cls(
            pages_per_query=max(1, _env_int("LEADPIPE_DISCOVERY_PAGES_PER_QUERY", 2)),
            candidate_multiplier=max(1, _env_int("LEADPIPE_DISCOVERY_CANDIDATE_MULTIPLIER", 3)),
        )


@dataclass
class EnrichmentOptions:
    """
    model:             OpenAI chat model used by the classifier.
    min_content_chars: companies with less crawled text are not sent to the model.
    """

    model: str = "gpt-4o-mini"
    min_content_chars: int = 50

    @classmethod
    def from_env(cls) -> "EnrichmentOptions":
        return cls(
            model=_env_str("LEADPIPE_OPENAI_MODEL", "gpt-4o-mini") or "gpt-4o-mini",
            min_content_chars=max(0, _env_int("LEADPIPE_ENRICH_MIN_CONTENT_CHARS", 50)),
        )


@dataclass
class Settings:
    """Top-level settings assembled once at startup and handed to build_pipeline()."""

    database_url: str
    worker: WorkerConfig = field(default_factory=WorkerConfig)
    crawl: CrawlOptions = field(default_factory=CrawlOptions)
    fetch: FetchOptions = field(default_factory=FetchOptions)
    discovery: DiscoveryOptions = field(default_factory=DiscoveryOptions)
    enrichment: EnrichmentOptions = field(default_factory=EnrichmentOptions)
    serper_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    alerts_webhook_url: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        database_url = _env_str("DATABASE_URL")
        if not database_url:
            # Keep this loud: nothing in the pipeline works without a store.
            raise RuntimeError(
                "DATABASE_URL is not set in environment. "
                "Export it (or put it in .env) before starting workers or flows."
            )
        return cls(
            database_url=database_url,
            worker=WorkerConfig.from_env(),
            crawl=CrawlOptions.from_env(),
            fetch=FetchOptions.from_env(),
            discovery=DiscoveryOptions.from_env(),
            enrichment=EnrichmentOptions.from_env(),
            serper_api_key=_env_str("SERPER_API_KEY"),
            openai_api_key=_env_str("OPENAI_API_KEY"),
            alerts_webhook_url=_env_str("LEADPIPE_ALERTS_WEBHOOK_URL"),
        )
