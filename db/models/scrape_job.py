"""
db/models/scrape_job.py

One row per site result produced by a scrape batch.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class ScrapeJobStatus:
    SUCCESS = "success"
    FAILED = "failed"


class ScrapeJob(Base, TimestampMixin):
    __tablename__ = "scrape_jobs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    site_key: Mapped[str] = mapped_column(String(64), nullable=False)
    site_name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="success, failed",
    )
    products_requested: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    products_scraped: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="URLs attempted before the batch stopped",
    )
    total_products: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fallback_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    errors: Mapped[list[dict[str, Any]] | None] = mapped_column(
        JSONB,
        nullable=True,
        comment="Per-URL error entries with url, error and kind",
    )
    requested_urls: Mapped[list[str] | None] = mapped_column(JSONB, nullable=True)
    scraped_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_scrape_jobs_site_key", "site_key"),
        Index("ix_scrape_jobs_scraped_at", "scraped_at"),
        Index("ix_scrape_jobs_site_key_status", "site_key", "status"),
    )
