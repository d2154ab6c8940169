"""
db/models/scraped_product.py

Point-in-time product snapshot captured from a competitor page.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base

SNAPSHOT_DEDUPE_CONSTRAINT = "uq_scraped_products_product_id_scraped_at"


class ScrapedProductRecord(Base):
    __tablename__ = "scraped_products"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    job_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("scrape_jobs.id", ondelete="SET NULL"),
        nullable=True,
    )
    product_id: Mapped[str] = mapped_column(
        String(96),
        nullable=False,
        comment="site key plus stable URL hash",
    )
    site_key: Mapped[str] = mapped_column(String(64), nullable=False)
    site_name: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    original_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    currency: Mapped[str] = mapped_column(String(8), nullable=False)
    availability: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="in_stock, out_of_stock, limited, pre_order, unknown",
    )
    stock_level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    brand: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sku: Mapped[str | None] = mapped_column(String(128), nullable=True)
    category: Mapped[str | None] = mapped_column(String(120), nullable=True)
    tags: Mapped[list[str] | None] = mapped_column(JSONB, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    review_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    origin: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="live, synthetic",
    )
    scraped_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("product_id", "scraped_at", name=SNAPSHOT_DEDUPE_CONSTRAINT),
        Index("ix_scraped_products_site_key", "site_key"),
        Index("ix_scraped_products_category", "category"),
        Index("ix_scraped_products_scraped_at", "scraped_at"),
        Index("ix_scraped_products_site_key_scraped_at", "site_key", "scraped_at"),
    )
