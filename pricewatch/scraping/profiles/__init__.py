"""
Site profile configuration and registry.
"""

from pricewatch.scraping.profiles.loader import load_product_keywords, load_site_profiles
from pricewatch.scraping.profiles.models import SELECTOR_FIELDS, PriceFormat, SiteProfile
from pricewatch.scraping.profiles.registry import SiteProfileRegistry

__all__ = [
    "PriceFormat",
    "SELECTOR_FIELDS",
    "SiteProfile",
    "SiteProfileRegistry",
    "load_product_keywords",
    "load_site_profiles",
]
