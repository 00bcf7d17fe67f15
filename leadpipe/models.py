from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional


@dataclass
class JobSpec:
    """
    What to enqueue.

    type:           DISCOVERY | CRAWL | ENRICHMENT
    target_url:     page/site the job works on (CRAWL)
    company_id:     company the job works on (CRAWL, ENRICHMENT)
    lead_search_id: search the job belongs to (all types)
    priority:       higher runs sooner; ties run oldest first
    scheduled_at:   not claimable before this time (None = now)
    """

    type: str
    target_url: Optional[str] = None
    company_id: Optional[int] = None
    lead_search_id: Optional[int] = None
    priority: int = 0
    scheduled_at: Optional[datetime] = None


@dataclass
class Job:
    id: int
    type: str
    status: str
    target_url: Optional[str]
    company_id: Optional[int]
    lead_search_id: Optional[int]
    priority: int
    attempts: int
    scheduled_at: Optional[datetime]
    created_at: Optional[datetime]
    started_at: Optional[datetime]
    finished_at: Optional[datetime]
    last_error: Optional[str]

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Job":
        return cls(
            id=row["id"],
            type=row["type"],
            status=row["status"],
            target_url=row["target_url"],
            company_id=row["company_id"],
            lead_search_id=row["lead_search_id"],
            priority=row["priority"],
            attempts=row["attempts"],
            scheduled_at=row["scheduled_at"],
            created_at=row["created_at"],
            started_at=row["started_at"],
            finished_at=row["finished_at"],
            last_error=row["last_error"],
        )


@dataclass
class CompanyIdentity:
    """The company fields that decide a lead's identity."""

    domain: Optional[str] = None
    website_url: Optional[str] = None
    name: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    google_maps_place_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "CompanyIdentity":
        return cls(
            domain=row.get("domain"),
            website_url=row.get("website_url"),
            name=row.get("name"),
            city=row.get("city"),
            country=row.get("country"),
            google_maps_place_id=row.get("google_maps_place_id"),
        )


@dataclass
class DeliveryContact:
    """A contact about to be delivered (and possibly charged) to a user."""

    email: str
    company: CompanyIdentity = field(default_factory=CompanyIdentity)
    id: Optional[int] = None


@dataclass
class LeadSearchRecord:
    id: int
    user_id: str
    query: str
    max_leads: int
    status: str
    error_message: Optional[str] = None
    discovered_count: int = 0
    crawled_count: int = 0
    enriched_count: int = 0
    contacts_found_count: int = 0
    total_found: int = 0
    total_deduped: int = 0
    total_net_new: int = 0
    credits_charged: int = 0
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "LeadSearchRecord":
        return cls(**{k: row[k] for k in cls.__dataclass_fields__})


@dataclass
class LeadRecord:
    """One deliverable lead: a contact plus the company facts a user filters on."""

    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company_name: Optional[str] = None
    website_url: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    niche: Optional[str] = None
    industry: Optional[str] = None
    size_bucket: Optional[str] = None
    role: Optional[str] = None
    is_decision_maker: bool = False
    score: Optional[float] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "LeadRecord":
        return cls(
            email=row["email"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            company_name=row["company_name"],
            website_url=row["website_url"],
            city=row["hq_city"],
            country=row["hq_country"],
            niche=row["niche"],
            industry=row["industry"],
            size_bucket=row["size_bucket"],
            role=row["role"],
            is_decision_maker=bool(row["is_decision_maker"]),
            score=row["ai_confidence"],
        )
