"""
leadpipe.orchestrator

Composition root. build_pipeline() wires every component from a Settings
struct; there are no module-level singletons anywhere else.

    settings = Settings.from_env()
    pipeline = build_pipeline(settings)
    pipeline.lead_searches.create_lead_search("user-1", "dentists in Leeds")
    pipeline.pool.run_until_idle()

Collaborators that talk to the outside world (page fetcher, search provider,
classifier, alerter) can be injected; tests pass fakes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from dotenv import load_dotenv
from sqlalchemy.engine import Engine

from .alerts import DiscordAlerter
from .billing import CreditLedger
from .config import Settings
from .crawler.fetch import Fetcher, make_fetcher
from .crawler.handler import SiteCrawlHandler
from .db import Store, init_schema, make_engine
from .discovery.handler import DiscoveryHandler
from .discovery.search import BaseSearchProvider, SerperSearchProvider
from .enrichment.classifier import BaseClassifier, NullClassifier, OpenAIClassifier
from .enrichment.handler import EnrichmentHandler
from .jobs import JobQueue
from .leadsearch import LeadSearchService, ProgressTracker
from .schema import JobType
from .worker import Worker, WorkerPool

logger = logging.getLogger(__name__)


@dataclass
class Pipeline:
    settings: Settings
    store: Store
    queue: JobQueue
    ledger: CreditLedger
    progress: ProgressTracker
    lead_searches: LeadSearchService
    handlers: Dict[str, object]
    worker: Worker
    pool: WorkerPool

    def init_schema(self) -> None:
        init_schema(self.store.engine)


def _default_classifier(settings: Settings) -> BaseClassifier:
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY not set; enrichment will use NullClassifier")
        return NullClassifier()
    return OpenAIClassifier(settings.openai_api_key, settings.enrichment)


def build_pipeline(
    settings: Settings,
    *,
    engine: Optional[Engine] = None,
    fetch: Optional[Fetcher] = None,
    search_provider: Optional[BaseSearchProvider] = None,
    classifier: Optional[BaseClassifier] = None,
    alerter: Optional[DiscordAlerter] = None,
) -> Pipeline:
    store = Store(engine or make_engine(settings.database_url))
    queue = JobQueue(store)
    ledger = CreditLedger(store)
    progress = ProgressTracker(store)

    handlers: Dict[str, object] = {
        JobType.DISCOVERY: DiscoveryHandler(
            store,
            queue,
            search_provider or SerperSearchProvider(settings.serper_api_key),
            progress,
            settings.discovery,
        ),
        JobType.CRAWL: SiteCrawlHandler(
            store,
            queue,
            ledger,
            progress,
            settings.crawl,
            fetch=fetch or make_fetcher(settings.fetch),
        ),
        JobType.ENRICHMENT: EnrichmentHandler(
            store,
            classifier or _default_classifier(settings),
            progress,
        ),
    }

    worker = Worker(
        queue,
        handlers,
        progress,
        alerter=alerter or DiscordAlerter(settings.alerts_webhook_url),
    )
    pool = WorkerPool(worker, settings.worker)

    logger.info("Pipeline built on %s (concurrency=%s)", store.dialect, settings.worker.concurrency)
    return Pipeline(
        settings=settings,
        store=store,
        queue=queue,
        ledger=ledger,
        progress=progress,
        lead_searches=LeadSearchService(store, queue),
        handlers=handlers,
        worker=worker,
        pool=pool,
    )


def build_pipeline_from_env(**overrides) -> Pipeline:
    """Entrypoint helper for flows and scripts: load .env, read Settings, wire the pipeline."""
    load_dotenv()
    return build_pipeline(Settings.from_env(), **overrides)
