from __future__ import annotations

import json
from typing import Any, Dict

from prefect import flow, get_run_logger

from leadpipe.orchestrator import build_pipeline_from_env


@flow(name="lead-search-start", persist_result=False)
def lead_search_start(user_id: str, query: str, max_leads: int = 100) -> Dict[str, Any]:
    """
    Create a lead search and queue its DISCOVERY job.

    The work itself happens in `pipeline-worker`; this flow only triggers it.
    Wallet problems (missing / empty) raise and fail the run.
    """
    logger = get_run_logger()
    pipeline = build_pipeline_from_env()

    record = pipeline.lead_searches.create_lead_search(user_id, query, max_leads=max_leads)

    payload = {
        "event": "lead_search_created",
        "lead_search_id": record.id,
        "user_id": record.user_id,
        "query": record.query,
        "max_leads": record.max_leads,
        "status": record.status,
    }
    logger.info(json.dumps(payload, sort_keys=True))
    return payload
