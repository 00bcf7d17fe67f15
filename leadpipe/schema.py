from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow():
    return datetime.now(tz=timezone.utc)


class JobType:
    DISCOVERY = "DISCOVERY"
    CRAWL = "CRAWL"
    ENRICHMENT = "ENRICHMENT"

    ALL = (DISCOVERY, CRAWL, ENRICHMENT)


class JobStatus:
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    DONE = "DONE"
    FAILED = "FAILED"

    ACTIVE = (PENDING, RUNNING)


class LeadSearchStatus:
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    DONE = "DONE"
    FAILED = "FAILED"


class Base(DeclarativeBase):
    pass


class CrawlJob(Base):
    __tablename__ = "crawl_jobs"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[str] = mapped_column(String(16))
    status: Mapped[str] = mapped_column(String(16), default=JobStatus.PENDING)
    target_url: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    company_id: Mapped[Optional[int]] = mapped_column(ForeignKey("companies.id", ondelete="SET NULL"), nullable=True)
    lead_search_id: Mapped[Optional[int]] = mapped_column(ForeignKey("lead_searches.id", ondelete="SET NULL"), nullable=True)
    priority: Mapped[int] = mapped_column(Integer, default=0)
    attempts: Mapped[int] = mapped_column(Integer, default=0)
    scheduled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    finished_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_error: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)

    __table_args__ = (
        Index("ix_crawl_jobs_claim", "status", "priority", "created_at"),
        Index("ix_crawl_jobs_lead_search", "lead_search_id", "type", "status"),
        Index("ix_crawl_jobs_company", "company_id", "type", "status"),
    )


class LeadSearch(Base):
    __tablename__ = "lead_searches"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    query: Mapped[str] = mapped_column(Text())
    max_leads: Mapped[int] = mapped_column(Integer, default=100)
    status: Mapped[str] = mapped_column(String(16), default=LeadSearchStatus.PENDING)
    error_message: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)

    discovered_count: Mapped[int] = mapped_column(Integer, default=0)
    crawled_count: Mapped[int] = mapped_column(Integer, default=0)
    enriched_count: Mapped[int] = mapped_column(Integer, default=0)
    contacts_found_count: Mapped[int] = mapped_column(Integer, default=0)
    total_found: Mapped[int] = mapped_column(Integer, default=0)
    total_deduped: Mapped[int] = mapped_column(Integer, default=0)
    total_net_new: Mapped[int] = mapped_column(Integer, default=0)
    credits_charged: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class Company(Base):
    __tablename__ = "companies"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    domain: Mapped[str] = mapped_column(String(255), unique=True)
    name: Mapped[str] = mapped_column(String(300))
    website_url: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    google_maps_place_id: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    source: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # crawl metadata
    last_crawled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    raw_content: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    ai_confidence: Mapped[Optional[float]] = mapped_column(nullable=True)
    linkedin_url: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    facebook_url: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    twitter_url: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    instagram_url: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    address_raw: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)

    # enrichment
    category: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    niche: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    tags: Mapped[Optional[List[Any]]] = mapped_column(JSON, nullable=True)
    industry: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    size_bucket: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    hq_city: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    hq_country: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    business_type: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    keywords: Mapped[Optional[List[Any]]] = mapped_column(JSON, nullable=True)
    ideal_customer_notes: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class LeadSearchCompany(Base):
    __tablename__ = "lead_search_companies"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    lead_search_id: Mapped[int] = mapped_column(ForeignKey("lead_searches.id", ondelete="CASCADE"))
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id", ondelete="CASCADE"))

    __table_args__ = (UniqueConstraint("lead_search_id", "company_id", name="uq_lead_search_company"),)


class Contact(Base):
    __tablename__ = "contacts"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), index=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id", ondelete="CASCADE"))
    lead_key: Mapped[Optional[str]] = mapped_column(String(400), nullable=True, index=True)
    source: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    role: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    is_decision_maker: Mapped[Optional[bool]] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (UniqueConstraint("email", "company_id", name="uq_contacts_email_company"),)


class CreditWallet(Base):
    __tablename__ = "credit_wallets"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), unique=True)
    balance: Mapped[int] = mapped_column(Integer, default=0)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class CreditTransaction(Base):
    __tablename__ = "credit_transactions"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64))
    lead_search_id: Mapped[Optional[int]] = mapped_column(ForeignKey("lead_searches.id", ondelete="SET NULL"), nullable=True)
    lead_key: Mapped[Optional[str]] = mapped_column(String(400), nullable=True)
    delta: Mapped[int] = mapped_column(Integer)
    reason: Mapped[str] = mapped_column(String(64))
    # set on refunds: the charge being reversed
    refund_of_id: Mapped[Optional[int]] = mapped_column(ForeignKey("credit_transactions.id"), nullable=True, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        Index("ix_credit_tx_user_key", "user_id", "lead_key"),
        # one charge per (user, lead) ever
        Index(
            "uq_credit_tx_charge",
            "user_id",
            "lead_key",
            unique=True,
            postgresql_where=text("delta = -1"),
            sqlite_where=text("delta = -1"),
        ),
    )
