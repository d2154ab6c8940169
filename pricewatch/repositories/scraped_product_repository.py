"""
pricewatch/repositories/scraped_product_repository.py

Persistence layer for scrape jobs and product snapshots.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from db.models.scrape_job import ScrapeJob, ScrapeJobStatus
from db.models.scraped_product import SNAPSHOT_DEDUPE_CONSTRAINT, ScrapedProductRecord
from pricewatch.domain.scraping import ScrapedProduct, ScrapingResult

_DEFAULT_BATCH_SIZE = 1000


class ScrapedProductRepository:
    """
    Repository for scrape job rows and batch snapshot inserts.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def create_job(self, result: ScrapingResult) -> ScrapeJob:
        """
        Add a scrape_jobs row for one site result and flush to obtain its id.
        """

        job = ScrapeJob(
            site_key=result.site_key,
            site_name=result.site_name,
            status=ScrapeJobStatus.SUCCESS if result.success else ScrapeJobStatus.FAILED,
            products_requested=result.products_requested,
            products_scraped=result.products_scraped,
            total_products=result.total_products,
            fallback_count=result.fallback_count,
            error_count=result.error_count,
            errors=[error.to_dict() for error in result.errors],
            requested_urls=list(result.requested_urls),
            scraped_at=datetime.fromisoformat(result.scraped_at),
        )
        self._session.add(job)
        self._session.flush()
        return job

    def bulk_insert(
        self,
        products: Sequence[ScrapedProduct],
        *,
        job_id: uuid.UUID | None = None,
        batch_size: int = _DEFAULT_BATCH_SIZE,
    ) -> int:
        """
        Insert snapshots with PostgreSQL bulk INSERT, skipping duplicates.
        """

        if not products:
            return 0

        payloads = [self._to_payload(product, job_id=job_id) for product in products]
        size = max(1, batch_size)
        deduped = self._deduplicate_payloads(payloads)
        inserted = 0

        for start in range(0, len(deduped), size):
            chunk = deduped[start : start + size]
            stmt = (
                insert(ScrapedProductRecord)
                .values(chunk)
                .on_conflict_do_nothing(constraint=SNAPSHOT_DEDUPE_CONSTRAINT)
                .returning(ScrapedProductRecord.id)
            )
            inserted += len(self._session.scalars(stmt).all())

        return inserted

    @staticmethod
    def _to_payload(product: ScrapedProduct, *, job_id: uuid.UUID | None) -> dict[str, Any]:
        return {
            "job_id": job_id,
            "product_id": product.product_id,
            "site_key": product.site_key,
            "site_name": product.site_name,
            "url": product.url,
            "title": product.title,
            "price": _to_decimal(product.price),
            "original_price": _to_decimal(product.original_price),
            "currency": product.currency,
            "availability": product.availability.value,
            "stock_level": product.stock_level,
            "description": product.description,
            "brand": product.brand,
            "sku": product.sku,
            "category": product.category,
            "tags": list(product.tags),
            "image_url": product.image_url,
            "rating": product.rating,
            "review_count": product.review_count,
            "origin": product.origin.value,
            "scraped_at": product.scraped_at,
        }

    @staticmethod
    def _deduplicate_payloads(payloads: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
        seen: set[tuple[str, datetime]] = set()
        deduped: list[dict[str, Any]] = []
        for payload in payloads:
            key = (payload["product_id"], payload["scraped_at"])
            if key in seen:
                continue
            seen.add(key)
            deduped.append(payload)
        return deduped


def _to_decimal(value: float | None) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value)).quantize(Decimal("0.01"))
