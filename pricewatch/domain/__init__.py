"""
Domain model exports.
"""

from pricewatch.domain.scraping import (
    Availability,
    FallbackResult,
    PriceRange,
    ProductOrigin,
    ProductResult,
    RealResult,
    ResultBuilder,
    ScrapedProduct,
    ScrapeError,
    ScrapingOptions,
    ScrapingResult,
    UrlOutcome,
    UrlStatus,
)

__all__ = [
    "Availability",
    "FallbackResult",
    "PriceRange",
    "ProductOrigin",
    "ProductResult",
    "RealResult",
    "ResultBuilder",
    "ScrapeError",
    "ScrapedProduct",
    "ScrapingOptions",
    "ScrapingResult",
    "UrlOutcome",
    "UrlStatus",
]
