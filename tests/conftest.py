"""Shared fixtures: a fresh SQLite file database per test and row factories."""

import pytest
from sqlalchemy import insert

from leadpipe.billing import CreditLedger
from leadpipe.db import Store, init_schema, make_engine
from leadpipe.jobs import JobQueue
from leadpipe.leadsearch import ProgressTracker
from leadpipe.schema import Company, LeadSearch, LeadSearchStatus, utcnow


@pytest.fixture()
def engine(tmp_path):  # type: ignore[no-untyped-def]
    eng = make_engine(f"sqlite:///{tmp_path / 'leadpipe.db'}")
    init_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def store(engine) -> Store:  # type: ignore[no-untyped-def]
    return Store(engine)


@pytest.fixture()
def queue(store: Store) -> JobQueue:
    return JobQueue(store)


@pytest.fixture()
def ledger(store: Store) -> CreditLedger:
    return CreditLedger(store)


@pytest.fixture()
def progress(store: Store) -> ProgressTracker:
    return ProgressTracker(store)


@pytest.fixture()
def make_lead_search(store: Store):  # type: ignore[no-untyped-def]
    """Insert a LeadSearch row directly; returns its id."""

    def _make(user_id: str = "user-1", query: str = "dentists in Leeds", status: str = LeadSearchStatus.RUNNING, **counters: int) -> int:
        with store.transaction() as conn:
            return conn.execute(
                insert(LeadSearch)
                .values(user_id=user_id, query=query, max_leads=10, status=status, created_at=utcnow(), **counters)
                .returning(LeadSearch.id)
            ).scalar_one()

    return _make


@pytest.fixture()
def make_company(store: Store):  # type: ignore[no-untyped-def]
    """Insert a Company row directly; returns its id."""

    def _make(domain: str = "acme-dental.co.uk", **fields: object) -> int:
        values = {"name": domain, "website_url": f"https://{domain}", "created_at": utcnow()}
        values.update(fields)
        with store.transaction() as conn:
            return conn.execute(insert(Company).values(domain=domain, **values).returning(Company.id)).scalar_one()

    return _make
