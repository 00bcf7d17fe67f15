"""
Best-effort structured fields pulled from a single page:
social profile links, a postal address guess and the company name.
All heuristics; any of them may come back empty.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

from ..domains import host_for_site
from .extractor import Markup, as_soup

_STREET_WORDS = re.compile(
    r"(street|st\.|road|rd\.|avenue|ave\.|lane|ln\.|way|square|sq\.|park|close|drive|dr\.|court|ct\.|place|pl\.)",
    re.I,
)
_UK_POSTCODE = re.compile(r"\b[A-Z]{1,2}\d{1,2}[A-Z]?\s?\d[A-Z]{2}\b", re.I)
_TITLE_SUFFIX = re.compile(r"\s*[-|]\s*(Home|Welcome|Official Site).*$", re.I)

_SOCIAL_HOSTS = {
    "linkedin": ("linkedin.com",),
    "facebook": ("facebook.com", "fb.me"),
    "twitter": ("twitter.com", "x.com"),
    "instagram": ("instagram.com", "instagr.am"),
}


@dataclass
class SocialLinks:
    linkedin: Optional[str] = None
    facebook: Optional[str] = None
    twitter: Optional[str] = None
    instagram: Optional[str] = None

    def merge_missing(self, other: "SocialLinks") -> None:
        """Fill only the platforms we don't have yet (first found wins)."""
        for platform in _SOCIAL_HOSTS:
            if not getattr(self, platform) and getattr(other, platform):
                setattr(self, platform, getattr(other, platform))

    def any(self) -> bool:
        return any(getattr(self, p) for p in _SOCIAL_HOSTS)


def _matches_host(host: str, suffixes) -> bool:
    return any(host == s or host.endswith("." + s) for s in suffixes)


def extract_social_links(markup: Markup) -> SocialLinks:
    soup = as_soup(markup)
    socials = SocialLinks()
    for a in soup.find_all("a", href=True):
        href = a["href"].strip()
        if not href.lower().startswith(("http://", "https://", "//")):
            continue
        host = host_for_site(href.lstrip("/") if href.startswith("//") else href)
        for platform, hosts in _SOCIAL_HOSTS.items():
            if not getattr(socials, platform) and _matches_host(host, hosts):
                setattr(socials, platform, href)
    return socials


def _body_lines(soup) -> List[str]:
    root = soup.body or soup
    text = root.get_text("\n")
    return [line.strip() for line in text.splitlines() if line.strip()]


def extract_address_guess(markup: Markup) -> Optional[str]:
    """
    <address> / itemprop=address / class*=address first, then the first body
    line that looks like a street address or carries a UK postcode.
    """
    soup = as_soup(markup)

    tagged = soup.select('address, [itemprop="address"], [class*="address"]')
    if tagged:
        txt = " ".join(tagged[0].get_text(" ").split())
        if txt and len(txt) < 300:
            return txt

    for line in _body_lines(soup):
        looks_street = (
            any(ch.isdigit() for ch in line)
            and _STREET_WORDS.search(line) is not None
            and 10 < len(line) < 200
        )
        if looks_street or _UK_POSTCODE.search(line):
            return line
    return None


def extract_company_name(markup: Markup) -> Optional[str]:
    """og:site_name, then <title> minus "- Home" style suffixes, then the first <h1>."""
    soup = as_soup(markup)

    og = soup.find("meta", attrs={"property": "og:site_name"})
    if og and og.get("content"):
        name = og["content"].strip()
        if name and len(name) < 100:
            return name

    if soup.title and soup.title.get_text():
        title = _TITLE_SUFFIX.sub("", soup.title.get_text().strip()).strip()
        if 0 < len(title) < 100:
            return title

    h1 = soup.find("h1")
    if h1:
        txt = h1.get_text(" ", strip=True)
        if txt and len(txt) < 100:
            return txt
    return None
