"""
Deterministic synthetic product generation for degraded scrapes.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from urllib.parse import quote

from pricewatch.domain.scraping import (
    Availability,
    FallbackResult,
    ProductOrigin,
    ScrapedProduct,
)
from pricewatch.scraping.hashing import build_product_id, url_digest
from pricewatch.scraping.profiles.models import SiteProfile

SYNTHETIC_TITLES = (
    "Organic Black Rice - Premium Grade",
    "Wild Brown Rice - 5lb Bag",
    "Red Rice - Himalayan Variety",
    "Jasmine White Rice - Thai Premium",
    "Organic Turmeric Powder - 100% Pure",
    "Raw Ginger Powder - Fresh Ground",
    "Moringa Leaf Powder - Superfood",
    "Raw Wildflower Honey - Local Harvest",
    "Organic Quinoa - Tri-Color Blend",
    "Ancient Grains Mix - Heritage Variety",
)

SYNTHETIC_DESCRIPTIONS = (
    "Premium quality organic product sourced from sustainable farms. Rich in nutrients "
    "and carefully processed to maintain maximum nutritional value.",
    "Carefully selected and processed using traditional methods. Non-GMO, gluten-free, "
    "and certified organic.",
    "Sustainably grown and harvested at peak freshness. Perfect for health-conscious "
    "consumers looking for premium quality.",
    "Farm-fresh product with superior taste and texture. Ideal for everyday cooking "
    "and special occasions.",
)

_URL_TAGS = (
    ("rice", ("rice", "grain")),
    ("powder", ("powder", "spice")),
    ("honey", ("honey", "sweetener")),
    ("black", ("black-rice", "antioxidant")),
    ("brown", ("brown-rice", "whole-grain")),
)


class SyntheticProductGenerator:
    """
    Builds placeholder products whose content depends only on the URL.

    Every field except `scraped_at` is derived from a SHA-256 digest of the
    URL, so the same URL yields the same title, price and category across
    runs and processes.
    """

    def __init__(self, *, product_keywords: Mapping[str, list[str]] | None = None) -> None:
        self._product_keywords = {
            category: list(keywords) for category, keywords in (product_keywords or {}).items()
        }

    def generate(
        self,
        url: str,
        profile: SiteProfile,
        *,
        reason: str,
        generated_at: datetime | None = None,
    ) -> FallbackResult:
        digest = url_digest(url)
        product_id = build_product_id(profile.key, url)

        price = float(10 + _slot(digest, 0) % 50) + (_slot(digest, 1) % 100) / 100
        in_stock = _slot(digest, 2) % 5 != 0
        product = ScrapedProduct(
            url=url,
            product_id=product_id,
            site_key=profile.key,
            site_name=profile.name,
            scraped_at=generated_at or datetime.now(timezone.utc),
            title=SYNTHETIC_TITLES[_slot(digest, 3) % len(SYNTHETIC_TITLES)],
            price=round(price, 2),
            original_price=round(price * 1.2, 2),
            currency=profile.price_format.currency_code,
            availability=Availability.IN_STOCK if in_stock else Availability.OUT_OF_STOCK,
            stock_level=_slot(digest, 4) % 100 if in_stock else 0,
            description=SYNTHETIC_DESCRIPTIONS[_slot(digest, 5) % len(SYNTHETIC_DESCRIPTIONS)],
            brand=profile.name,
            sku=f"SKU-{product_id}",
            category=self.detect_category(url),
            tags=self.tags_for(url),
            image_url=f"https://via.placeholder.com/400x400?text={quote(profile.name)}",
            rating=round(3.0 + (_slot(digest, 6) % 21) / 10, 1),
            review_count=_slot(digest, 7) % 500,
            origin=ProductOrigin.SYNTHETIC,
        )
        return FallbackResult(product=product, reason=reason)

    def detect_category(self, url: str) -> str:
        lowered = url.lower()
        for category, keywords in self._product_keywords.items():
            for keyword in keywords:
                if keyword.replace(" ", "-") in lowered or keyword.replace(" ", "_") in lowered:
                    return category
        return "general"

    @staticmethod
    def tags_for(url: str) -> tuple[str, ...]:
        lowered = url.lower()
        tags = ["organic"]
        for marker, marker_tags in _URL_TAGS:
            if marker in lowered:
                tags.extend(marker_tags)
        return tuple(dict.fromkeys(tags))


def _slot(digest: bytes, index: int) -> int:
    start = (index * 2) % len(digest)
    return int.from_bytes(digest[start : start + 2], "big")
