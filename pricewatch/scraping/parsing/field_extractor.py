"""
BeautifulSoup-based field extraction for competitor product pages.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from pricewatch.domain.scraping import Availability, ScrapedProduct
from pricewatch.scraping.hashing import build_product_id
from pricewatch.scraping.logging_utils import log_event
from pricewatch.scraping.profiles.models import PriceFormat, SiteProfile

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 1000
TEXT_ATTRIBUTES = ("content", "value")
IMAGE_ATTRIBUTES = ("src", "data-src", "data-lazy-src", "content")
DEFAULT_BRAND_SELECTORS = [
    'meta[property="og:brand"]',
    'meta[property="product:brand"]',
    ".brand-name",
    ".product-brand",
]

_NUMBER_TOKEN = re.compile(r"\d+(?:\.\d+)?")
_INTEGER_TOKEN = re.compile(r"\d+")
_LEADING_DECIMAL = re.compile(r"\d+(?:\.\d+)?|\.\d+")
_PRICE_TOKEN = re.compile(r"[\d.,]*\d")

# Checked in order; the first pattern found wins.
_AVAILABILITY_PATTERNS: tuple[tuple[Availability, re.Pattern[str]], ...] = (
    (
        Availability.IN_STOCK,
        re.compile(r"(?<!not )(?<!no longer )\b(?:in[\s-]?stock|available)\b"),
    ),
    (
        Availability.OUT_OF_STOCK,
        re.compile(r"\b(?:out[\s-]?of[\s-]?stock|unavailable|not available|not in stock|sold[\s-]?out)\b"),
    ),
    (Availability.LIMITED, re.compile(r"\b(?:limited|low[\s-]?stock|only \d+ left)\b")),
    (Availability.PRE_ORDER, re.compile(r"\b(?:pre[\s-]?order|preorder)\b")),
)


def normalize_availability(text: str | None) -> Availability:
    """
    Map free-text availability to the enumerated state.
    """

    if not text:
        return Availability.UNKNOWN
    lowered = re.sub(r"\s+", " ", text.lower())
    for state, pattern in _AVAILABILITY_PATTERNS:
        if pattern.search(lowered):
            return state
    return Availability.UNKNOWN


def parse_price(text: str | None, price_format: PriceFormat | None = None) -> float | None:
    """
    Parse a display price into a number; unparseable input yields None.
    """

    if not text:
        return None
    fmt = price_format or PriceFormat()

    token = _PRICE_TOKEN.search(text)
    if token is None:
        return None

    cleaned = token.group(0).rstrip(".,")
    cleaned = cleaned.replace(fmt.effective_thousands_separator, "")
    if fmt.decimal_separator != ".":
        cleaned = cleaned.replace(fmt.decimal_separator, ".")

    match = _LEADING_DECIMAL.match(cleaned)
    if match is None:
        return None
    try:
        return float(Decimal(match.group(0)))
    except InvalidOperation:
        return None


def parse_rating(text: str | None) -> float | None:
    if not text:
        return None
    match = _NUMBER_TOKEN.search(text)
    if match is None:
        return None
    return min(5.0, max(0.0, float(match.group(0))))


def parse_count(text: str | None) -> int | None:
    if not text:
        return None
    match = _INTEGER_TOKEN.search(text.replace(",", ""))
    if match is None:
        return None
    return int(match.group(0))


class FieldExtractor:
    """
    Pulls product fields out of raw markup using a site profile's selectors.

    Missing fields come back as None; extraction never raises for absent or
    malformed data.
    """

    def __init__(self, *, parser: str = "html.parser") -> None:
        self._parser = parser

    def extract(
        self,
        markup: str,
        profile: SiteProfile,
        *,
        url: str,
        scraped_at: datetime | None = None,
    ) -> ScrapedProduct:
        soup = BeautifulSoup(markup or "", self._parser)

        price = parse_price(self.text(soup, profile.selectors_for("price")), profile.price_format)
        original_price = parse_price(
            self.text(soup, profile.selectors_for("original_price")),
            profile.price_format,
        )
        brand_selectors = profile.selectors_for("brand") or DEFAULT_BRAND_SELECTORS

        return ScrapedProduct(
            url=url,
            product_id=build_product_id(profile.key, url),
            site_key=profile.key,
            site_name=profile.name,
            scraped_at=scraped_at or datetime.now(timezone.utc),
            title=self.text(soup, profile.selectors_for("title")),
            price=price,
            original_price=original_price,
            currency=profile.price_format.currency_code,
            availability=normalize_availability(
                self.text(soup, profile.selectors_for("availability"))
            ),
            stock_level=parse_count(self.text(soup, profile.selectors_for("stock_level"))),
            description=self.text(soup, profile.selectors_for("description")),
            brand=self.text(soup, brand_selectors),
            sku=self.text(soup, profile.selectors_for("sku")),
            category=self.text(soup, profile.selectors_for("category")),
            image_url=self.image_url(soup, profile.selectors_for("image"), page_url=url),
            rating=parse_rating(self.text(soup, profile.selectors_for("rating"))),
            review_count=parse_count(self.text(soup, profile.selectors_for("reviews"))),
        )

    def text(self, soup: BeautifulSoup, selectors: Sequence[str]) -> str | None:
        """
        Return the first non-empty text among candidate selectors.
        """

        for selector in selectors:
            node = self._select_one(soup, selector)
            if node is None:
                continue
            text = _clean_text(node.get_text(" ", strip=True))
            for attribute in TEXT_ATTRIBUTES:
                if text:
                    break
                text = _clean_text(_attribute(node, attribute))
            if text:
                return text[:MAX_TEXT_LENGTH]
        return None

    def image_url(self, soup: BeautifulSoup, selectors: Sequence[str], *, page_url: str) -> str | None:
        for selector in selectors:
            node = self._select_one(soup, selector)
            if node is None:
                continue
            for attribute in IMAGE_ATTRIBUTES:
                raw = _attribute(node, attribute).strip()
                if raw and not raw.startswith("data:"):
                    return urljoin(page_url, raw)
        return None

    @staticmethod
    def _select_one(soup: BeautifulSoup, selector: str) -> Tag | None:
        try:
            return soup.select_one(selector)
        except SelectorSyntaxError as exc:
            log_event(
                logger,
                logging.WARNING,
                "invalid_selector",
                selector=selector,
                error=str(exc),
            )
            return None


def _attribute(node: Tag, name: str) -> str:
    value = node.get(name)
    if isinstance(value, list):
        return " ".join(value)
    return value or ""


def _clean_text(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip()
