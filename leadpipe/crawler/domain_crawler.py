"""
Bounded, sequential crawl of one business website.

    result = crawl_domain("https://acme.co.uk", CrawlOptions(max_pages=6, max_depth=2))

Starts at the root, serves contact/about style pages first, follows same-host
links breadth-first up to `max_depth`, and stops after `max_pages` visited
URLs. A failed fetch is logged and skipped. No robots.txt, no rate limiting.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..config import CrawlOptions
from .extractor import as_soup, extract_emails, extract_phones, extract_text
from .fetch import Fetcher, fetch_page
from .frontier import CrawlFrontier
from .structured import SocialLinks, extract_address_guess, extract_company_name, extract_social_links
from .urls import normalize_root_url, normalize_url

logger = logging.getLogger(__name__)


@dataclass
class CrawlResult:
    emails: List[str] = field(default_factory=list)
    phones: List[str] = field(default_factory=list)
    text_content: str = ""
    social_links: SocialLinks = field(default_factory=SocialLinks)
    address_guess: Optional[str] = None
    company_name: Optional[str] = None
    pages_visited: int = 0


def _dedupe(items: List[str]) -> List[str]:
    return list(dict.fromkeys(items))


def crawl_domain(
    root_url: str,
    options: Optional[CrawlOptions] = None,
    fetch: Optional[Fetcher] = None,
) -> CrawlResult:
    opts = options or CrawlOptions()
    fetch = fetch or fetch_page

    root = normalize_root_url(root_url)
    if not root:
        logger.warning("crawl_domain: unusable root url %r", root_url)
        return CrawlResult()

    frontier = CrawlFrontier(max_depth=opts.max_depth)
    frontier.seed(root)

    emails: List[str] = []
    phones: List[str] = []
    texts: List[str] = []
    socials = SocialLinks()
    address: Optional[str] = None
    company_name: Optional[str] = None

    logger.info("Starting domain crawl root=%s max_pages=%s max_depth=%s", root, opts.max_pages, opts.max_depth)

    while len(frontier.visited) < opts.max_pages:
        nxt = frontier.pop()
        if nxt is None:
            break
        url, depth = nxt

        logger.debug("Crawling url=%s depth=%s visited=%s queued=%s", url, depth, len(frontier.visited), len(frontier))

        body = fetch(url)
        if not body:
            logger.warning("Failed to fetch page %s", url)
            continue

        soup = as_soup(body)
        page_emails = extract_emails(body)
        page_phones = extract_phones(soup)
        emails.extend(page_emails)
        phones.extend(page_phones)
        texts.append(extract_text(soup))

        socials.merge_missing(extract_social_links(soup))
        if not address:
            address = extract_address_guess(soup)
        if not company_name and depth == 0:
            company_name = extract_company_name(soup)

        queued = 0
        for a in soup.find_all("a", href=True):
            link = normalize_url(url, a["href"])
            if link and frontier.add_link(link, depth):
                queued += 1

        logger.debug(
            "Page processed url=%s emails=%s phones=%s new_links=%s",
            url,
            len(page_emails),
            len(page_phones),
            queued,
        )

    result = CrawlResult(
        emails=_dedupe(emails),
        phones=_dedupe(phones),
        text_content=" ".join(t for t in texts if t).strip(),
        social_links=socials,
        address_guess=address,
        company_name=company_name,
        pages_visited=len(frontier.visited),
    )
    logger.info(
        "Domain crawl completed root=%s pages=%s emails=%s phones=%s socials=%s address=%s name=%s",
        root,
        result.pages_visited,
        len(result.emails),
        len(result.phones),
        socials.any(),
        bool(address),
        bool(company_name),
    )
    return result
