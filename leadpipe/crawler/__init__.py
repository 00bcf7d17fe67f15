"""
Website crawling for lead contact data.

- urls.py / frontier.py: which pages to visit, in what order
- fetch.py: the default HTTP fetcher (requests)
- extractor.py / structured.py: what to pull out of each page
- domain_crawler.py: crawl_domain(), the bounded multi-page crawl
- handler.py: the CRAWL job handler
"""

from .domain_crawler import CrawlResult, crawl_domain
from .structured import SocialLinks

__all__ = ["CrawlResult", "SocialLinks", "crawl_domain"]
