from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

from prefect import flow, get_run_logger

from leadpipe.leadsearch import export_lead_search_csv
from leadpipe.orchestrator import build_pipeline_from_env


@flow(name="lead-search-export", persist_result=False)
def lead_search_export(
    lead_search_id: int,
    out_path: str,
    min_score: Optional[float] = None,
    industry: Optional[str] = None,
    size_bucket: Optional[str] = None,
    country: Optional[str] = None,
    decision_maker_only: bool = False,
    limit: Optional[int] = None,
) -> Dict[str, Any]:
    """Write a search's leads to a CSV file. An unknown search fails the run."""
    logger = get_run_logger()
    pipeline = build_pipeline_from_env()

    text = export_lead_search_csv(
        pipeline.lead_searches,
        lead_search_id,
        limit=limit,
        min_score=min_score,
        industry=industry,
        size_bucket=size_bucket,
        country=country,
        decision_maker_only=decision_maker_only,
    )
    Path(out_path).write_text(text, encoding="utf-8")

    payload = {
        "event": "lead_search_exported",
        "lead_search_id": lead_search_id,
        "path": out_path,
        "bytes": len(text.encode("utf-8")),
    }
    logger.info(json.dumps(payload, sort_keys=True))
    return payload
