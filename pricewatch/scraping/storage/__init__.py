"""
Storage layer exports.
"""

from pricewatch.scraping.storage.base import ProductSink
from pricewatch.scraping.storage.sqlalchemy_storage import SQLAlchemyProductSink

__all__ = ["ProductSink", "SQLAlchemyProductSink"]
