from __future__ import annotations

import json
from collections import Counter
from typing import Any, Dict, Optional

from prefect import flow, get_run_logger
from prefect.runtime import flow_run  # type: ignore

from leadpipe.orchestrator import build_pipeline_from_env


@flow(name="pipeline-worker", persist_result=False)
def pipeline_worker(max_jobs: Optional[int] = None) -> Dict[str, Any]:
    """
    Drain the job queue (DISCOVERY -> CRAWL -> ENRICHMENT) and stop when idle
    or after `max_jobs` jobs. Emits one JSON line per failed job and a
    summary line for runbook checks.
    """
    logger = get_run_logger()
    pipeline = build_pipeline_from_env()
    logger.info(
        "Pipeline worker started (concurrency=%s, max_jobs=%s)",
        pipeline.settings.worker.concurrency,
        max_jobs,
    )

    outcomes = pipeline.pool.run_until_idle(max_jobs=max_jobs)

    done_by_type: Counter = Counter()
    failed_by_type: Counter = Counter()
    for o in outcomes:
        if o.ok:
            done_by_type[o.job_type] += 1
        else:
            failed_by_type[o.job_type] += 1
            logger.warning(
                json.dumps(
                    {
                        "event": "pipeline_worker_job_failed",
                        "job_id": o.job_id,
                        "job_type": o.job_type,
                        "lead_search_id": o.lead_search_id,
                        "error": o.error,
                    },
                    sort_keys=True,
                )
            )

    run_id = getattr(flow_run, "id", None)
    summary = {
        "event": "pipeline_worker_run_complete",
        "run_id": str(run_id) if run_id else None,
        "jobs_total": len(outcomes),
        "jobs_done": sum(done_by_type.values()),
        "jobs_failed": sum(failed_by_type.values()),
        "done_by_type": dict(done_by_type),
        "failed_by_type": dict(failed_by_type),
    }
    logger.info(json.dumps(summary, sort_keys=True))
    return summary


if __name__ == "__main__":
    pipeline_worker()
