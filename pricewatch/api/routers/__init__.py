"""
API router exports.
"""

from pricewatch.api.routers.price_scraping import router as price_scraping_router

__all__ = ["price_scraping_router"]
