"""
SQLAlchemy-backed sink for scrape results.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pricewatch.domain.scraping import ScrapingResult
from pricewatch.repositories.scraped_product_repository import ScrapedProductRepository
from pricewatch.scraping.logging_utils import log_event
from pricewatch.scraping.storage.base import ProductSink

logger = logging.getLogger(__name__)


class SQLAlchemyProductSink(ProductSink):
    """
    Writes one scrape_jobs row plus its product snapshots per site result.
    """

    def __init__(self, *, session: Session, batch_size: int = 1000) -> None:
        self._session = session
        self._batch_size = max(1, batch_size)

    def store(self, result: ScrapingResult) -> int:
        repository = ScrapedProductRepository(self._session)
        try:
            job = repository.create_job(result)
            inserted = repository.bulk_insert(
                result.products,
                job_id=job.id,
                batch_size=self._batch_size,
            )
            self._session.commit()
        except SQLAlchemyError:
            self._session.rollback()
            raise

        log_event(
            logger,
            logging.INFO,
            "scrape_result_stored",
            site=result.site_key,
            job_id=job.id,
            inserted=inserted,
        )
        return inserted
