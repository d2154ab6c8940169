"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.scrape_job import ScrapeJob, ScrapeJobStatus
from db.models.scraped_product import SNAPSHOT_DEDUPE_CONSTRAINT, ScrapedProductRecord

__all__ = [
    "SNAPSHOT_DEDUPE_CONSTRAINT",
    "ScrapeJob",
    "ScrapeJobStatus",
    "ScrapedProductRecord",
]
