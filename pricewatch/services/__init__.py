"""
pricewatch/services package marker.
"""

from pricewatch.services.price_intelligence_service import (
    PriceIntelligenceService,
    build_http_session,
    get_price_intelligence_service,
)

__all__ = [
    "PriceIntelligenceService",
    "build_http_session",
    "get_price_intelligence_service",
]
