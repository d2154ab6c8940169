"""
pricewatch/repositories package marker.
"""

from pricewatch.repositories.scraped_product_repository import ScrapedProductRepository

__all__ = ["ScrapedProductRepository"]
