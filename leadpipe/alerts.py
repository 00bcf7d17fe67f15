"""
Discord alerts for pipeline failures.

Best-effort only: a missing webhook logs a warning, a failing webhook logs
an error, and neither is ever raised into the worker loop.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

WEBHOOK_TIMEOUT_S = 10


def _build_prefix(severity: str) -> str:
    s = severity.lower()
    if s == "critical":
        return "[CRITICAL]"
    if s == "error":
        return "[ERROR]"
    if s == "info":
        return "[INFO]"
    return f"[{severity.upper()}]"


def _format_context(context: Optional[Dict[str, Any]]) -> str:
    if not context:
        return ""
    lines = [f"- **{k}**: `{v}`" for k, v in context.items()]
    return "\n\n**Context:**\n" + "\n".join(lines)


class DiscordAlerter:
    def __init__(self, webhook_url: Optional[str], username: str = "leadpipe alerts", session: Optional[requests.Session] = None) -> None:
        self.webhook_url = webhook_url
        self.username = username
        self.session = session or requests.Session()

    def send(self, title: str, body: str, *, severity: str = "error", context: Optional[Dict[str, Any]] = None) -> bool:
        if not self.webhook_url:
            logger.warning("No alerts webhook configured; severity=%s title=%r body=%r", severity, title, body)
            return False

        embed = {
            "title": f"{_build_prefix(severity)} {title}",
            "description": (body or "") + _format_context(context),
            "color": 0xFF0000 if severity.lower() in ("critical", "error") else 0x5865F2,
        }
        payload = {"username": self.username, "embeds": [embed]}
        try:
            resp = self.session.post(self.webhook_url, json=payload, timeout=WEBHOOK_TIMEOUT_S)
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.error("Discord alert failed: %s", e)
            return False
        return True

    def job_failed(self, job_id: int, job_type: str, lead_search_id: Optional[int], error: str) -> bool:
        return self.send(
            f"{job_type} job {job_id} failed",
            error,
            context={"job_id": job_id, "job_type": job_type, "lead_search_id": lead_search_id},
        )
