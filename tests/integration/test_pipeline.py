"""
End-to-end: lead search -> discovery -> crawl -> enrichment on SQLite, with the
network collaborators replaced by in-memory fakes.
"""

import pytest
from sqlalchemy import select

from leadpipe.alerts import DiscordAlerter
from leadpipe.config import Settings
from leadpipe.discovery.search import SearchHit
from leadpipe.enrichment.classifier import EnrichmentResult
from leadpipe.orchestrator import Pipeline, build_pipeline
from leadpipe.schema import Company, CrawlJob, JobStatus, JobType, LeadSearchStatus
from tests.fakes import FakeClassifier, FakeFetcher, FakeSearchProvider

HITS = [
    SearchHit("https://www.acme-dental.co.uk/", "Acme Dental | Leeds"),
    SearchHit("https://www.facebook.com/acmedental", "Acme Dental - Facebook"),
    SearchHit("https://bright-smiles.co.uk", "Bright Smiles"),
]

PAGES = {
    "https://www.acme-dental.co.uk": (
        "<html><head><title>Acme Dental - Home</title></head><body>"
        "<p>Contact jane.doe@acme-dental.co.uk or info@acme-dental.co.uk</p>"
        '<a href="/contact">Contact</a>'
        "</body></html>"
    ),
    "https://www.acme-dental.co.uk/contact": "<html><body><p>Call 0113 496 0000</p></body></html>",
    "https://bright-smiles.co.uk": "<html><body><h1>Bright Smiles</h1><p>bob@bright-smiles.co.uk</p></body></html>",
}


@pytest.fixture()
def pipeline(engine) -> Pipeline:  # type: ignore[no-untyped-def]
    settings = Settings(database_url=str(engine.url))
    return build_pipeline(
        settings,
        engine=engine,
        fetch=FakeFetcher(PAGES),
        search_provider=FakeSearchProvider(HITS),
        classifier=FakeClassifier(EnrichmentResult(category="Dentist", size_bucket="SMALL")),
        alerter=DiscordAlerter(None),
    )


def _job_statuses(pipeline: Pipeline):  # type: ignore[no-untyped-def]
    with pipeline.store.connect() as conn:
        return conn.execute(select(CrawlJob.type, CrawlJob.status).order_by(CrawlJob.id)).all()


def test_full_run_charges_once_per_company(pipeline: Pipeline) -> None:
    pipeline.ledger.create_wallet("user-1", balance=10)
    ls = pipeline.lead_searches.create_lead_search("user-1", "dentists in Leeds", max_leads=10)

    outcomes = pipeline.pool.run_until_idle()

    assert all(o.ok for o in outcomes)
    assert [o.job_type for o in outcomes].count(JobType.CRAWL) == 2
    assert [o.job_type for o in outcomes].count(JobType.ENRICHMENT) == 2

    record = pipeline.lead_searches.get(ls.id)
    assert record.status == LeadSearchStatus.DONE
    assert (record.discovered_count, record.crawled_count, record.enriched_count) == (2, 2, 2)
    assert (record.total_found, record.total_deduped, record.total_net_new, record.credits_charged) == (3, 1, 2, 2)
    assert record.contacts_found_count == 3
    assert pipeline.ledger.get_balance("user-1") == 8

    with pipeline.store.connect() as conn:
        companies = conn.execute(select(Company.domain, Company.category).order_by(Company.domain)).all()
    assert [tuple(c) for c in companies] == [("acme-dental.co.uk", "Dentist"), ("bright-smiles.co.uk", "Dentist")]


def test_second_search_redelivers_for_free(pipeline: Pipeline) -> None:
    pipeline.ledger.create_wallet("user-1", balance=10)
    pipeline.lead_searches.create_lead_search("user-1", "dentists in Leeds")
    pipeline.pool.run_until_idle()

    again = pipeline.lead_searches.create_lead_search("user-1", "dentists in Leeds")
    pipeline.pool.run_until_idle()

    record = pipeline.lead_searches.get(again.id)
    assert record.status == LeadSearchStatus.DONE
    assert (record.total_found, record.total_deduped, record.credits_charged) == (3, 3, 0)
    assert pipeline.ledger.get_balance("user-1") == 8


def test_running_out_of_credits_fails_only_that_crawl(pipeline: Pipeline) -> None:
    pipeline.ledger.create_wallet("user-1", balance=1)
    ls = pipeline.lead_searches.create_lead_search("user-1", "dentists in Leeds")

    outcomes = pipeline.pool.run_until_idle()

    failed = [o for o in outcomes if not o.ok]
    assert len(failed) == 1
    assert failed[0].job_type == JobType.CRAWL
    assert failed[0].error.startswith("InsufficientCreditsError")  # type: ignore[union-attr]

    record = pipeline.lead_searches.get(ls.id)
    assert record.status == LeadSearchStatus.DONE
    assert (record.crawled_count, record.credits_charged) == (1, 1)
    assert pipeline.ledger.get_balance("user-1") == 0
    assert (JobType.CRAWL, JobStatus.FAILED) in [tuple(r) for r in _job_statuses(pipeline)]


def test_refund_after_delivery(pipeline: Pipeline) -> None:
    pipeline.ledger.create_wallet("user-1", balance=10)
    ls = pipeline.lead_searches.create_lead_search("user-1", "dentists in Leeds")
    pipeline.pool.run_until_idle()

    assert pipeline.ledger.refund_lead_credit("user-1", ls.id, "domain:bright-smiles.co.uk") is True
    assert pipeline.ledger.get_balance("user-1") == 9
