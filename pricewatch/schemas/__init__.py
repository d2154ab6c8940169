"""
pricewatch/schemas package marker.
"""

from pricewatch.schemas.scraping import (
    ScrapePricesRequest,
    ScrapedProductResponse,
    SiteProfileResponse,
    SiteScrapeResultResponse,
)

__all__ = [
    "ScrapePricesRequest",
    "ScrapedProductResponse",
    "SiteProfileResponse",
    "SiteScrapeResultResponse",
]
