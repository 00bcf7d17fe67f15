from __future__ import annotations

import urllib.parse
from typing import Optional

# Hosts that are never a lead's own website (social networks, directories,
# marketplaces, search engines, link shorteners). Matched as domain suffixes.
_NON_BUSINESS_DOMAINS = (
    "facebook.com",
    "fb.me",
    "instagram.com",
    "linkedin.com",
    "twitter.com",
    "x.com",
    "tiktok.com",
    "youtube.com",
    "goo.gl",
    "bit.ly",
    "bing.com",
    "wikipedia.org",
    "yell.com",
    "reddit.com",
    "medium.com",
    "checkatrade.com",
    "thomsonlocal.com",
    "192.com",
    "nhs.uk",
    "gov.uk",
)

# Brands with many country TLDs; matched against any host label.
_NON_BUSINESS_BRANDS = (
    "google",
    "yahoo",
    "yelp",
    "tripadvisor",
    "trustpilot",
    "amazon",
    "ebay",
    "pinterest",
    "indeed",
    "glassdoor",
)


def host_for_site(site: str) -> str:
    """Lowercased hostname without `www.`; '' when unparseable."""
    s = (site or "").strip()
    if not s:
        return ""
    if "://" not in s:
        s = "https://" + s
    try:
        host = (urllib.parse.urlparse(s).hostname or "").lower()
    except ValueError:
        return ""
    if host.startswith("www."):
        host = host[4:]
    return host


def normalize_domain(value: str) -> str:
    """
    Normalize a URL or bare domain to its base domain.

    - strips scheme, path, port and a leading `www.`
    - lowercases
    - falls back to the lowercased input when nothing parses
    """
    host = host_for_site(value)
    if host:
        return host
    return (value or "").strip().lower()


def normalize_domain_from_url(url: str) -> Optional[str]:
    host = host_for_site(url)
    if not host or "." not in host:
        return None
    return host


def is_likely_business_domain(domain: Optional[str]) -> bool:
    d = (domain or "").strip().lower()
    if not d or "." not in d:
        return False
    for bad in _NON_BUSINESS_DOMAINS:
        if d == bad or d.endswith("." + bad):
            return False
    labels = d.split(".")
    return not any(brand in labels for brand in _NON_BUSINESS_BRANDS)
