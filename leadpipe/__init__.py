"""
leadpipe: lead discovery / crawl / enrichment pipeline.

Responsible for:
- A persistent job queue (DISCOVERY -> CRAWL -> ENRICHMENT) with atomic claims.
- A bounded, priority-first website crawler that extracts contact data.
- Canonical lead identity (lead keys) used for dedupe and billing.
- A credit ledger that charges at most once per (user, lead key).
"""

__version__ = "0.4.0"
