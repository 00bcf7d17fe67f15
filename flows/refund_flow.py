from __future__ import annotations

import json
from typing import Any, Dict, Optional

from prefect import flow, get_run_logger

from leadpipe.orchestrator import build_pipeline_from_env


@flow(name="refund-lead", persist_result=False)
def refund_lead(user_id: str, lead_key: str, lead_search_id: Optional[int] = None) -> Dict[str, Any]:
    """Operator refund of one delivered lead. A lead never charged, or already refunded, is a no-op."""
    logger = get_run_logger()
    pipeline = build_pipeline_from_env()

    refunded = pipeline.ledger.refund_lead_credit(user_id, lead_search_id, lead_key)
    balance = pipeline.ledger.get_balance(user_id)

    payload = {
        "event": "lead_refund",
        "user_id": user_id,
        "lead_search_id": lead_search_id,
        "lead_key": lead_key,
        "refunded": refunded,
        "balance": balance,
    }
    logger.info(json.dumps(payload, sort_keys=True))
    return payload
