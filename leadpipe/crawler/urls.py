from __future__ import annotations

import re
import urllib.parse
from typing import Optional

# Pages likely to carry contact / business info; crawled ahead of everything else.
INTERESTING_PATH_KEYWORDS = (
    "contact",
    "about",
    "team",
    "staff",
    "people",
    "services",
    "service",
    "locations",
    "location",
    "branch",
    "branches",
    "clinic",
    "clinics",
    "office",
    "offices",
    "find-us",
    "visit",
    "address",
    "reach",
    "get-in-touch",
)

_SKIP_URL_PATTERNS = (
    re.compile(r"\.(pdf|jpg|jpeg|png|gif|svg|ico|css|js|xml|json)$", re.I),
    re.compile(r"/wp-admin/", re.I),
    re.compile(r"/wp-content/", re.I),
    re.compile(r"/feed/", re.I),
    re.compile(r"/print/", re.I),
    re.compile(r"/share/", re.I),
    re.compile(r"/download/", re.I),
    re.compile(r"\?utm_", re.I),
)


def normalize_root_url(raw: str) -> Optional[str]:
    """`example.com/` -> `https://example.com`; None for non-http(s) input."""
    s = (raw or "").strip()
    if not s:
        return None
    if "://" not in s:
        s = "https://" + s
    try:
        u = urllib.parse.urlparse(s)
    except ValueError:
        return None
    if u.scheme not in ("http", "https") or not u.netloc:
        return None
    return urllib.parse.urlunparse((u.scheme, u.netloc, u.path, u.params, u.query, "")).rstrip("/")


def normalize_url(base_url: str, href: str) -> Optional[str]:
    """
    Resolve `href` against `base_url`.

    Returns None for anchors, mailto:/tel:/javascript: links, other hosts and
    anything unparseable. Fragment and trailing slashes are stripped.
    """
    h = (href or "").strip()
    if not h or h.startswith("#"):
        return None
    low = h.lower()
    if low.startswith(("mailto:", "tel:", "javascript:")):
        return None

    try:
        base = urllib.parse.urlparse(base_url)
        u = urllib.parse.urlparse(urllib.parse.urljoin(base_url, h))
    except ValueError:
        return None

    if u.scheme not in ("http", "https"):
        return None
    if (u.hostname or "").lower() != (base.hostname or "").lower():
        return None

    return urllib.parse.urlunparse((u.scheme, u.netloc, u.path, u.params, u.query, "")).rstrip("/")


def is_interesting_path(url: str) -> bool:
    try:
        path = urllib.parse.urlparse(url).path.lower()
    except ValueError:
        return False
    return any(kw in path for kw in INTERESTING_PATH_KEYWORDS)


def should_skip_url(url: str) -> bool:
    return any(rx.search(url) for rx in _SKIP_URL_PATTERNS)
