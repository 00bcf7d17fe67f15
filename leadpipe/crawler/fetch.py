from __future__ import annotations

import logging
from typing import Callable, Optional

import requests

from ..config import FetchOptions

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Optional[str]]


def fetch_page(url: str, options: Optional[FetchOptions] = None) -> Optional[str]:
    """GET one page. Returns the body on 2xx, None otherwise. Never retries."""
    opts = options or FetchOptions()
    headers = {
        "User-Agent": opts.user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-GB,en;q=0.9",
    }
    try:
        r = requests.get(url, headers=headers, timeout=opts.timeout_s)
    except requests.RequestException as e:
        logger.warning("fetch_page: %s failed: %s: %s", url, type(e).__name__, e)
        return None

    if not (200 <= r.status_code < 300):
        logger.warning("fetch_page: %s returned status %s", url, r.status_code)
        return None
    return r.text


def make_fetcher(options: Optional[FetchOptions] = None) -> Fetcher:
    opts = options or FetchOptions()

    def _fetch(url: str) -> Optional[str]:
        return fetch_page(url, opts)

    return _fetch
