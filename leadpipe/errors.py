"""
Error types raised by the pipeline core.

Callers (HTTP layer, flows, scripts) can tell actionable failures apart from
generic ones: a missing row, a missing wallet, or "top up credits".
"""

from __future__ import annotations

from typing import Any, Optional


class LeadPipeError(Exception):
    """Base class for all leadpipe errors."""


class NotFoundError(LeadPipeError):
    def __init__(self, entity: str, key: Any) -> None:
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key!r}")


class WalletNotFoundError(NotFoundError):
    def __init__(self, user_id: str) -> None:
        super().__init__("credit wallet", user_id)
        self.user_id = user_id


class InsufficientCreditsError(LeadPipeError):
    """
    Raised when a wallet cannot cover a charge.

    `summary` carries the duplicate / net-new classification computed before
    the charge was rejected (None for the soft pre-search check).
    """

    def __init__(self, required: int, available: int, summary: Optional[Any] = None) -> None:
        self.required = required
        self.available = available
        self.summary = summary
        super().__init__(f"Insufficient credits. Required: {required}, Available: {available}")


class JobSpecError(LeadPipeError, ValueError):
    """Invalid job spec passed to JobQueue.enqueue()."""
